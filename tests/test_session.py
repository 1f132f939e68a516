import json

import pytest
from conftest import ADDRESS, make_token_tx, make_tx

from ethdash.ui.session import DashboardSession, main


def _seed(upstream):
    upstream.reply("balance", "2500000000000000000")
    upstream.reply("tokenbalance", "1000000000000000000")
    upstream.reply("txlist", [make_tx(i) for i in range(25)])


def test_submit_runs_balance_token_balance_then_transactions(client, upstream):
    _seed(upstream)
    state = DashboardSession(client).submit(ADDRESS, start_block=9_000_000)

    assert [r.url.params["action"] for r in upstream.requests] == ["balance", "tokenbalance", "txlist"]
    assert upstream.requests[1].url.params["contractaddress"] == ADDRESS
    assert upstream.requests[2].url.params["startblock"] == "9000000"
    assert state.balance["balance"] == 2.5  # noqa: PLR2004
    assert state.token_balance["balance"] == 1.0
    assert state.transactions["transactionType"] == "normal"
    assert state.transactions["pagination"]["totalPages"] == 2  # noqa: PLR2004
    assert state.error is None


def test_token_balance_failure_is_silent(client, upstream):
    _seed(upstream)
    upstream.reply("tokenbalance", "", status="0", message="NOTOK")
    state = DashboardSession(client).submit(ADDRESS)

    assert state.error is None
    assert state.token_balance is None
    assert state.failed_steps == ["token-balance"]
    assert state.transactions is not None


def test_failed_step_does_not_stop_later_steps(client, upstream):
    _seed(upstream)
    upstream.reply("balance", "", status="0", message="NOTOK")
    upstream.reply("txlist", [], status="0", message="No transactions found")
    state = DashboardSession(client).submit(ADDRESS)

    # first error wins
    assert state.error == "Failed to fetch balance"
    assert state.balance is None
    assert state.token_balance is not None
    assert state.failed_steps == ["balance", "transactions"]


def test_tabs_and_paging(client, upstream):
    _seed(upstream)
    upstream.reply("txlistinternal", [make_tx(i) for i in range(3)])
    upstream.reply("tokentx", [make_token_tx(i) for i in range(45)])
    session = DashboardSession(client)
    session.submit(ADDRESS)

    state = session.change_tab("internal")
    assert state.active_tab == "internal"
    assert state.transactions["transactionType"] == "internal"

    state = session.change_tab("token")
    assert state.transactions["transactionType"] == "token"
    assert state.transactions["pagination"]["totalPages"] == 3  # noqa: PLR2004

    state = session.change_page(3)
    assert state.transactions["pagination"]["currentPage"] == 3  # noqa: PLR2004
    assert len(state.transactions["transactions"]) == 5  # noqa: PLR2004
    assert upstream.last_params["action"] == "tokentx"

    state = session.change_tab("tokens")
    assert state.holdings["totalTokens"] == 1
    assert upstream.last_params["action"] == "tokentx"

    before = len(upstream.requests)
    session.change_page(2)
    assert len(upstream.requests) == before


def test_actions_before_submit_do_nothing(client, upstream):
    session = DashboardSession(client)
    assert session.change_tab("internal").active_tab == "internal"
    session.change_page(2)
    assert upstream.requests == []


def test_unknown_tab(client):
    with pytest.raises(ValueError, match="unknown tab"):
        DashboardSession(client).change_tab("nft")


def test_session_command_prints_state(client, upstream, capsys):
    _seed(upstream)
    upstream.reply("txlistinternal", [make_tx(i) for i in range(3)])
    code = main([ADDRESS, "--tab", "internal", "--start-block", "5"], http=client)

    assert code == 0
    state = json.loads(capsys.readouterr().out)
    assert state["active_tab"] == "internal"
    assert state["transactions"]["transactionType"] == "internal"
    assert upstream.requests[-1].url.params["startblock"] == "5"


def test_session_command_exits_nonzero_on_error(client, upstream, capsys):
    _seed(upstream)
    upstream.reply("balance", "", status="0", message="NOTOK")
    assert main([ADDRESS], http=client) == 1
    assert json.loads(capsys.readouterr().out)["error"] == "Failed to fetch balance"
