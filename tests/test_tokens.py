"""Tests for correlation token generation."""

from cmd_workbench.core.tokens import SequentialTokens, new_token


def test_new_token_is_prefixed_by_owner():
    token = new_token("shellSampleView-1")
    owner, _, suffix = token.rpartition(":")
    assert owner == "shellSampleView-1"
    assert len(suffix) == 12
    int(suffix, 16)


def test_new_token_is_fresh_each_call():
    tokens = {new_token("V1") for _ in range(200)}
    assert len(tokens) == 200


def test_sequential_tokens_count_up():
    source = SequentialTokens()
    assert source("V1") == "V1:1"
    assert source("V2") == "V2:2"
    assert source("V1") == "V1:3"


def test_sequential_tokens_start():
    assert SequentialTokens(start=40)("V1") == "V1:40"


def test_independent_sources_do_not_share_a_counter():
    a, b = SequentialTokens(), SequentialTokens()
    assert a("V1") == b("V1") == "V1:1"
