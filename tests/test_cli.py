import pytest

from ledger_host.__main__ import build_parser


def test_blinds_and_balance_parse():
    args = build_parser().parse_args(["--sb", "5", "--bb", "10", "--starting-balance", "0"])
    assert (args.sb, args.bb, args.starting_balance) == (5, 10, 0)


@pytest.mark.parametrize(
    "argv",
    [
        ["--sb", "-1"],
        ["--bb", "-5"],
        ["--starting-balance", "-100"],
        ["--bb", str(2**64)],
        ["--sb", "ten"],
    ],
)
def test_out_of_range_amounts_rejected(argv, capsys):
    with pytest.raises(SystemExit) as excinfo:
        build_parser().parse_args(argv)
    assert excinfo.value.code == 2
    assert "argument" in capsys.readouterr().err
