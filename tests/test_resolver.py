"""Tests for argument-to-entity resolution."""

from __future__ import annotations

import pytest

from botcore.resolver import (
    ENTITY_KINDS,
    GUILD_MEMBER,
    ROLE,
    USER,
    EntityKind,
    Strategy,
    mention_id,
    parse_guild,
    parse_guild_channel,
    parse_guild_member,
    parse_role,
    parse_text_channel,
    parse_user,
    resolve,
    resolve_async,
)
from directory_fakes import (
    ADMINS,
    ALICE,
    BOB,
    CAROL,
    GENERAL,
    MODS,
    RANDOM,
    FakeDirectory,
    FakeRole,
    FakeUser,
    make_dm_context,
    make_guild_context,
)


class TestMentionId:
    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("<@123>", 123),
            ("<@!123>", 123),
            ("<@>", None),
            ("<@!>", None),
            ("<@123", None),
            ("@123>", None),
            ("<@12a>", None),
            ("<@-1>", None),
            ("<@18446744073709551616>", None),
        ],
    )
    def test_user_wrappers(self, token: str, expected: int | None) -> None:
        assert mention_id(token, ("<@", "<@!")) == expected

    def test_role_wrapper_keeps_every_digit(self) -> None:
        assert mention_id("<@&901>", ("<@&",)) == 901


class TestGuildMember:
    def test_self_keyword(self) -> None:
        context = make_guild_context()
        assert parse_guild_member(context, "self") is ALICE

    def test_self_keyword_is_case_sensitive(self) -> None:
        context = make_guild_context()
        assert parse_guild_member(context, "Self") is None

    def test_self_keyword_disabled(self) -> None:
        context = make_guild_context()
        assert parse_guild_member(context, "self", allow_self=False) is None

    def test_self_wins_over_member_named_self(self) -> None:
        context = make_guild_context()
        context.guild.members.insert(0, FakeUser(999, "self"))
        assert parse_guild_member(context, "self") is ALICE

    @pytest.mark.parametrize("token", ["<@456>", "<@!456>"])
    def test_mentions(self, token: str) -> None:
        assert parse_guild_member(make_guild_context(), token) is BOB

    @pytest.mark.parametrize("token", ["<@999>", "<@!999>"])
    def test_mention_of_absent_member(self, token: str) -> None:
        assert parse_guild_member(make_guild_context(), token) is None

    def test_mention_disabled(self) -> None:
        context = make_guild_context()
        assert parse_guild_member(context, "<@456>", allow_mention=False) is None

    def test_bare_id(self) -> None:
        assert parse_guild_member(make_guild_context(), "456") is BOB

    def test_bare_id_disabled(self) -> None:
        context = make_guild_context()
        assert parse_guild_member(context, "456", allow_id=False) is None

    def test_name_uses_display_form(self) -> None:
        context = make_guild_context()
        assert parse_guild_member(context, "alice#0001") is ALICE
        assert parse_guild_member(context, "bob") is BOB
        assert parse_guild_member(context, "alice") is None

    def test_name_disabled(self) -> None:
        context = make_guild_context()
        assert parse_guild_member(context, "bob", allow_name=False) is None

    def test_id_miss_falls_through_to_name(self) -> None:
        context = make_guild_context()
        numeric = FakeUser(777, "31337")
        context.guild.members.append(numeric)
        assert parse_guild_member(context, "31337") is numeric

    def test_duplicate_names_return_one_of_them(self) -> None:
        context = make_guild_context()
        twin_a = FakeUser(601, "twin")
        twin_b = FakeUser(602, "twin")
        context.guild.members.extend([twin_a, twin_b])
        assert parse_guild_member(context, "twin") in (twin_a, twin_b)

    def test_none_context(self) -> None:
        with pytest.raises(TypeError):
            parse_guild_member(None, "self")  # type: ignore[arg-type]


class TestRole:
    def test_mention(self) -> None:
        assert parse_role(make_guild_context(), "<@&901>") is ADMINS

    def test_id(self) -> None:
        assert parse_role(make_guild_context(), "900") is MODS

    def test_name(self) -> None:
        assert parse_role(make_guild_context(), "admins") is ADMINS

    def test_name_is_exact(self) -> None:
        assert parse_role(make_guild_context(), "Admins") is None

    def test_absent(self) -> None:
        assert parse_role(make_guild_context(), "<@&1>") is None

    def test_user_mention_is_not_a_role(self) -> None:
        assert parse_role(make_guild_context(), "<@900>") is None

    def test_numeric_role_name_after_id_miss(self) -> None:
        context = make_guild_context()
        numeric = FakeRole(902, "2024")
        context.guild.roles.append(numeric)
        assert parse_role(context, "2024") is numeric

    def test_name_only(self) -> None:
        context = make_guild_context()
        assert parse_role(context, "900", allow_id=False) is None
        assert parse_role(context, "mods", allow_id=False, allow_mention=False) is MODS


class TestGuildChannel:
    @pytest.mark.parametrize("token", ["this", "THIS", "This"])
    def test_this_keyword(self, token: str) -> None:
        assert parse_guild_channel(make_guild_context(), token) is GENERAL

    def test_this_disabled_falls_to_name(self) -> None:
        context = make_guild_context()
        assert parse_guild_channel(context, "this", allow_this=False) is None

    def test_mention(self) -> None:
        assert parse_guild_channel(make_guild_context(), "<#501>") is RANDOM

    def test_id(self) -> None:
        assert parse_guild_channel(make_guild_context(), "501") is RANDOM

    def test_name(self) -> None:
        assert parse_guild_channel(make_guild_context(), "random") is RANDOM

    def test_absent_mention(self) -> None:
        assert parse_guild_channel(make_guild_context(), "<#9>") is None


class TestTextChannel:
    def test_id_uses_directory(self) -> None:
        assert parse_text_channel(make_dm_context(), "500") is GENERAL

    def test_mention_uses_directory(self) -> None:
        assert parse_text_channel(make_dm_context(), "<#500>") is GENERAL

    def test_this_without_guild(self) -> None:
        assert parse_text_channel(make_dm_context(), "this") is None

    def test_this_in_guild(self) -> None:
        assert parse_text_channel(make_guild_context(), "this") is GENERAL

    def test_no_name_strategy(self) -> None:
        assert parse_text_channel(make_guild_context(), "general") is None


class TestGuild:
    def test_this_in_guild(self) -> None:
        context = make_guild_context()
        assert parse_guild(context, "THIS") is context.guild

    def test_this_without_guild(self) -> None:
        assert parse_guild(make_dm_context(), "this") is None

    def test_id_uses_global_directory(self) -> None:
        context = make_dm_context()
        assert parse_guild(context, "42") is context.directory.get_guild(42)

    def test_unknown_id(self) -> None:
        assert parse_guild(make_dm_context(), "43") is None

    def test_id_disabled(self) -> None:
        assert parse_guild(make_dm_context(), "42", allow_id=False) is None


class TestUser:
    @pytest.mark.anyio
    async def test_self(self) -> None:
        context = make_dm_context()
        assert await parse_user(context, "self") is BOB
        assert context.directory.fetch_calls == []

    @pytest.mark.anyio
    @pytest.mark.parametrize("token", ["<@789>", "<@!789>", "789"])
    async def test_fetches_by_id(self, token: str) -> None:
        context = make_dm_context()
        assert await parse_user(context, token) is CAROL
        assert context.directory.fetch_calls == [789]

    @pytest.mark.anyio
    async def test_missing_user(self) -> None:
        context = make_dm_context()
        assert await parse_user(context, "<@1>") is None
        assert context.directory.fetch_calls == [1]

    @pytest.mark.anyio
    async def test_no_name_strategy(self) -> None:
        context = make_dm_context()
        assert await parse_user(context, "carol") is None
        assert context.directory.fetch_calls == []

    @pytest.mark.anyio
    async def test_overflow_never_fetches(self) -> None:
        context = make_dm_context()
        assert await parse_user(context, "18446744073709551616") is None
        assert context.directory.fetch_calls == []

    @pytest.mark.anyio
    async def test_largest_snowflake(self) -> None:
        big = FakeUser(18446744073709551615, "big")
        context = make_dm_context(directory=FakeDirectory(users=[big]))
        assert await parse_user(context, "18446744073709551615") is big

    @pytest.mark.anyio
    async def test_strategies_disabled(self) -> None:
        context = make_dm_context()
        assert await parse_user(context, "self", allow_self=False) is None
        assert await parse_user(context, "<@789>", allow_mention=False) is None
        assert await parse_user(context, "789", allow_id=False) is None
        assert context.directory.fetch_calls == []


class TestGenericResolver:
    def test_every_kind_has_a_lookup(self) -> None:
        names = {kind.name for kind in ENTITY_KINDS}
        assert names == {
            "user",
            "guild_member",
            "role",
            "guild_channel",
            "text_channel",
            "guild",
        }

    def test_strategy_flags(self) -> None:
        context = make_guild_context()
        assert resolve(GUILD_MEMBER, context, "bob", Strategy.NAME) is BOB
        assert resolve(GUILD_MEMBER, context, "456", Strategy.NAME) is None
        assert resolve(ROLE, context, "<@&900>", Strategy.MENTION) is MODS
        assert resolve(ROLE, context, "mods", Strategy(0)) is None

    def test_sync_driver_rejects_awaitable_lookup(self) -> None:
        context = make_dm_context()
        with pytest.raises(TypeError, match="resolve_async"):
            resolve(USER, context, "789")
        assert context.directory.fetch_calls == []

    @pytest.mark.anyio
    async def test_async_driver_accepts_plain_lookup(self) -> None:
        context = make_guild_context()
        assert await resolve_async(GUILD_MEMBER, context, "<@456>") is BOB
        assert await resolve_async(ROLE, context, "mods") is MODS
        assert await resolve_async(ROLE, context, "<@&1>") is None

    @pytest.mark.anyio
    async def test_async_driver_awaits_user_lookup(self) -> None:
        context = make_dm_context()
        assert await resolve_async(USER, context, "789") is CAROL

    @pytest.mark.parametrize(("stop_on_miss", "found"), [(True, False), (False, True)])
    def test_stop_on_miss_skips_name_strategy(
        self, stop_on_miss: bool, found: bool
    ) -> None:
        numeric = FakeRole(903, "2024")
        kind = EntityKind(
            name="numbered_role",
            lookup=lambda context, role_id: None,
            candidates=lambda context: [numeric],
            display=lambda role: role.name,
            stop_on_miss=stop_on_miss,
        )
        result = resolve(kind, make_guild_context(), "2024")
        assert (result is numeric) is found
