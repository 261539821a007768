"""
Tests for Client: convenience REST methods feeding the caches and the
gateway event router.
"""

import json
from typing import Any, Dict, List, Tuple

import httpx
import pytest

from .client import Client
from .constants import GatewayEvent
from .exceptions import ConfigurationError, InvalidArgumentError, NotFoundError
from .structures import Member

API_PREFIX = "/api/v10"


class FakeApi:
    """Routes (method, path) to canned JSON answers and records requests."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self.requests: List[httpx.Request] = []
        self.transport = httpx.MockTransport(self.handle)

    def on(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        self.routes[(method, API_PREFIX + path)] = (status, body)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"code": 0, "message": "404: Not Found"})
        status, body = route
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def lastJson(self) -> Any:
        return json.loads(self.requests[-1].content)


def guildPayload() -> Dict[str, Any]:
    return {
        "id": "100",
        "name": "guild",
        "member_count": 2,
        "roles": [{"id": "100", "name": "@everyone", "permissions": "0"}, {"id": "200", "name": "mods"}],
        "members": [
            {"user": {"id": "1", "username": "alice"}, "roles": []},
            {"user": {"id": "2", "username": "bob"}, "roles": ["200"]},
        ],
        "channels": [{"id": "300", "type": 0, "name": "general"}],
    }


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
async def client(api):
    client = Client("test_token", restConfig={"maxRetries": 0}, transport=api.transport)
    yield client
    await client.aclose()


class TestClientInit:
    """Test suite for Client construction."""

    def test_default_limits(self):
        client = Client("token")
        assert client.users.limit is None
        assert client.messages.limit == 100
        assert client.rest.maxRetries == 3

    def test_cache_config(self):
        client = Client("token", cacheConfig={"users": 10, "messages": 0}, restConfig={"maxRetries": 1})
        assert client.users.limit == 10
        assert client.messages.limit == 0
        assert client.rest.maxRetries == 1

    def test_invalid_config(self):
        with pytest.raises(ConfigurationError):
            Client("")
        with pytest.raises(InvalidArgumentError):
            Client("token", cacheConfig={"guilds": -1})


class TestClientRest:
    """Test suite for the convenience REST methods."""

    async def test_get_user_updates_cache(self, client, api):
        api.on("GET", "/users/1", body={"id": "1", "username": "alice"})
        cached = client.users.add({"id": "1", "username": "old"})

        user = await client.getUser("1")

        assert user is cached
        assert user.username == "alice"

    async def test_get_channel_links_guild(self, client, api):
        client.processEvent("GUILD_CREATE", guildPayload())
        api.on("GET", "/channels/301", body={"id": "301", "type": 0, "guild_id": "100", "name": "new"})

        channel = await client.getChannel("301")

        assert client.channels.get("301") is channel
        assert client.guilds.get("100").channels.get("301") is channel

    async def test_get_guild(self, client, api):
        api.on("GET", "/guilds/100", body=guildPayload())

        guild = await client.getGuild("100", withCounts=True)

        assert client.guilds.get("100") is guild
        assert api.requests[-1].url.params["with_counts"] == "true"
        assert guild.members.get("2").user is client.users.get("2")

    async def test_get_guild_member_cached_guild(self, client, api):
        client.processEvent("GUILD_CREATE", guildPayload())
        api.on("GET", "/guilds/100/members/1", body={"user": {"id": "1", "username": "alice"}, "nick": "Al"})
        alice = client.guilds.get("100").members.get("1")

        member = await client.getGuildMember("100", "1")

        assert member is alice
        assert member.nick == "Al"

    async def test_get_guild_member_uncached_guild(self, client, api):
        api.on("GET", "/guilds/5/members/9", body={"user": {"id": "9", "username": "zed"}})

        member = await client.getGuildMember("5", "9")

        assert member.username == "zed"
        assert member.user is client.users.get("9")

    async def test_create_message(self, client, api):
        api.on(
            "POST",
            "/channels/300/messages",
            body={"id": "50", "channel_id": "300", "content": "hi", "author": {"id": "99", "username": "yuko"}},
        )

        message = await client.createMessage("300", "hi", embeds=[{"title": "t"}])

        assert api.lastJson() == {"content": "hi", "embeds": [{"title": "t"}]}
        assert client.messages.get("50") is message
        assert message.author is client.users.get("99")

    async def test_create_message_with_files(self, client, api):
        api.on("POST", "/channels/300/messages", body={"id": "51", "channel_id": "300"})

        await client.createMessage("300", "see attached", files=[("a.txt", b"hello")])

        request = api.requests[-1]
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        assert b'name="files[0]"; filename="a.txt"' in request.content
        assert b'"content":"see attached"' in request.content

    async def test_edit_and_delete_message(self, client, api):
        client.processEvent("MESSAGE_CREATE", {"id": "50", "channel_id": "300", "content": "hi"})
        cached = client.messages.get("50")
        api.on("PATCH", "/channels/300/messages/50", body={"id": "50", "channel_id": "300", "content": "edited"})
        api.on("DELETE", "/channels/300/messages/50", status=204)

        edited = await client.editMessage("300", "50", "edited")
        assert edited is cached
        assert cached.content == "edited"

        await client.deleteMessage("300", "50", reason="cleanup")
        assert "50" not in client.messages
        assert api.requests[-1].headers["X-Audit-Log-Reason"] == "cleanup"

    async def test_create_dm(self, client, api):
        api.on("POST", "/users/@me/channels", body={"id": "9", "type": 1, "recipients": [{"id": "1", "username": "a"}]})

        channel = await client.createDM("1")

        assert api.lastJson() == {"recipient_id": "1"}
        assert channel.isPrivate
        assert channel.recipients[0] is client.users.get("1")

    async def test_member_role_management(self, client, api):
        client.processEvent("GUILD_CREATE", guildPayload())
        api.on("PUT", "/guilds/100/members/1/roles/200", status=204)
        api.on("DELETE", "/guilds/100/members/1/roles/200", status=204)
        alice = client.guilds.get("100").members.get("1")

        await client.addGuildMemberRole("100", "1", "200", reason="promoted")
        assert alice.roles == ["200"]

        await client.removeGuildMemberRole("100", "1", "200")
        assert alice.roles == []

    async def test_edit_guild_member(self, client, api):
        client.processEvent("GUILD_CREATE", guildPayload())
        api.on("PATCH", "/guilds/100/members/1", body={"user": {"id": "1"}, "nick": "Ally", "roles": []})

        member = await client.editGuildMember("100", "1", nick="Ally")

        assert api.lastJson() == {"nick": "Ally"}
        assert member is client.guilds.get("100").members.get("1")
        assert member.nick == "Ally"

    async def test_ban_and_kick(self, client, api):
        client.processEvent("GUILD_CREATE", guildPayload())
        api.on("PUT", "/guilds/100/bans/1", status=204)
        api.on("DELETE", "/guilds/100/members/2", status=204)
        guild = client.guilds.get("100")

        await client.banGuildMember("100", "1", deleteMessageSeconds=3600, reason="spam")
        assert api.lastJson() == {"delete_message_seconds": 3600}
        assert "1" not in guild.members

        await client.removeGuildMember("100", "2")
        assert len(guild.members) == 0
        assert guild.member_count == 0
        # Users outlive their memberships
        assert "1" in client.users

    async def test_member_actions_use_given_client(self, client, api):
        client.processEvent("GUILD_CREATE", guildPayload())
        api.on("PUT", "/guilds/100/members/1/roles/200", status=204)
        api.on("DELETE", "/guilds/100/members/1/roles/200", status=204)
        api.on("PATCH", "/guilds/100/members/1", body={"user": {"id": "1"}, "nick": "Ally"})
        api.on("PUT", "/guilds/100/bans/2", status=204)
        api.on("DELETE", "/guilds/100/members/1", status=204)
        guild = client.guilds.get("100")
        alice = guild.members.get("1")
        bob = guild.members.get("2")

        await alice.addRole(client, "200", reason="promoted")
        assert alice.roles == ["200"]
        assert api.requests[-1].headers["X-Audit-Log-Reason"] == "promoted"
        await alice.removeRole(client, "200")
        assert alice.roles == []

        assert await alice.edit(client, nick="Ally") is alice
        assert api.lastJson() == {"nick": "Ally"}
        assert alice.nick == "Ally"

        await bob.ban(client, deleteMessageSeconds=60)
        assert api.lastJson() == {"delete_message_seconds": 60}
        await alice.remove(client, reason="bye")
        assert len(guild.members) == 0

    async def test_uncached_member_acts_on_its_guild(self, client, api):
        api.on("GET", "/guilds/5/members/9", body={"user": {"id": "9", "username": "zed"}})
        api.on("DELETE", "/guilds/5/members/9", status=204)

        member = await client.getGuildMember("5", "9")
        await member.remove(client)

        assert member.guild_id == "5"
        assert api.requests[-1].method == "DELETE"

    async def test_member_without_guild_cannot_act(self, client, api):
        member = Member.from_dict({"user": {"id": "1"}})

        with pytest.raises(InvalidArgumentError):
            await member.ban(client)
        assert api.requests == []

    async def test_message_and_channel_actions(self, client, api):
        client.processEvent("GUILD_CREATE", guildPayload())
        api.on("POST", "/channels/300/messages", body={"id": "50", "channel_id": "300", "content": "hi"})
        api.on("PATCH", "/channels/300/messages/50", body={"id": "50", "channel_id": "300", "content": "edited"})
        api.on("DELETE", "/channels/300/messages/50", status=204)

        message = await client.channels.get("300").createMessage(client, "hi", tts=True)
        assert api.lastJson() == {"content": "hi", "tts": True}
        assert client.messages.get("50") is message

        assert await message.edit(client, "edited") is message
        assert message.content == "edited"

        await message.delete(client, reason="cleanup")
        assert "50" not in client.messages
        assert [request.method for request in api.requests] == ["POST", "PATCH", "DELETE"]

    async def test_errors_propagate(self, client, api):
        with pytest.raises(NotFoundError):
            await client.getUser("404")
        assert len(client.users) == 0


class TestClientEvents:
    """Test suite for processEvent()."""

    @pytest.fixture
    def client(self):
        return Client("test_token")

    def test_guild_create_and_update(self, client):
        guild = client.processEvent(GatewayEvent.GUILD_CREATE, guildPayload())
        assert client.guilds.get("100") is guild
        assert client.channels.get("300") is guild.channels.get("300")

        updated = client.processEvent("GUILD_UPDATE", {"id": "100", "name": "renamed"})
        assert updated is guild
        assert guild.name == "renamed"
        assert len(guild.members) == 2

    def test_guild_delete(self, client):
        client.processEvent("GUILD_CREATE", guildPayload())

        outage = client.processEvent("GUILD_DELETE", {"id": "100", "unavailable": True})
        assert outage.unavailable is True
        assert "100" in client.guilds

        removed = client.processEvent("GUILD_DELETE", {"id": "100"})
        assert removed is outage
        assert "100" not in client.guilds
        assert "300" not in client.channels

    def test_member_events(self, client):
        guild = client.processEvent("GUILD_CREATE", guildPayload())

        member = client.processEvent(
            "GUILD_MEMBER_ADD", {"guild_id": "100", "user": {"id": "3", "username": "carol"}, "roles": []}
        )
        assert guild.members.get("3") is member
        assert guild.member_count == 3

        client.processEvent("GUILD_MEMBER_UPDATE", {"guild_id": "100", "user": {"id": "3"}, "nick": "C", "roles": []})
        assert member.nick == "C"
        assert guild.member_count == 3

        removed = client.processEvent("GUILD_MEMBER_REMOVE", {"guild_id": "100", "user": {"id": "3"}})
        assert removed is member
        assert "3" not in guild.members
        assert guild.member_count == 2

    def test_member_event_for_unknown_guild(self, client):
        assert client.processEvent("GUILD_MEMBER_ADD", {"guild_id": "999", "user": {"id": "3"}}) is None
        assert "3" not in client.users

    def test_role_events(self, client):
        guild = client.processEvent("GUILD_CREATE", guildPayload())

        role = client.processEvent("GUILD_ROLE_CREATE", {"guild_id": "100", "role": {"id": "201", "name": "vip"}})
        assert guild.roles.get("201") is role
        assert role.guild is guild

        client.processEvent("GUILD_ROLE_UPDATE", {"guild_id": "100", "role": {"id": "201", "name": "VIP"}})
        assert role.name == "VIP"

        assert client.processEvent("GUILD_ROLE_DELETE", {"guild_id": "100", "role_id": "200"}) is not None
        assert "200" not in guild.roles
        assert guild.members.get("2").roles == []

    def test_channel_events(self, client):
        guild = client.processEvent("GUILD_CREATE", guildPayload())

        channel = client.processEvent("CHANNEL_CREATE", {"id": "301", "type": 0, "guild_id": "100", "name": "new"})
        assert guild.channels.get("301") is channel

        client.processEvent("CHANNEL_UPDATE", {"id": "301", "guild_id": "100", "topic": "hello"})
        assert channel.topic == "hello"

        assert client.processEvent("CHANNEL_DELETE", {"id": "301", "guild_id": "100"}) is channel
        assert "301" not in client.channels
        assert "301" not in guild.channels

    def test_message_events(self, client):
        client.processEvent("GUILD_CREATE", guildPayload())
        payload = {"id": "50", "channel_id": "300", "guild_id": "100", "content": "hi", "author": {"id": "1"}}

        message = client.processEvent("MESSAGE_CREATE", payload)
        assert message.author is client.users.get("1")
        assert client.channels.get("300").last_message_id == "50"

        client.processEvent("MESSAGE_UPDATE", {"id": "50", "channel_id": "300", "content": "edited"})
        assert message.content == "edited"
        assert client.processEvent("MESSAGE_UPDATE", {"id": "51", "content": "unknown"}) is None

        assert client.processEvent("MESSAGE_DELETE", {"id": "50", "channel_id": "300"}) is message
        assert len(client.messages) == 0

    def test_user_update_seen_by_members(self, client):
        guild = client.processEvent("GUILD_CREATE", guildPayload())
        client.processEvent("USER_UPDATE", {"id": "1", "username": "alice2"})
        assert guild.members.get("1").username == "alice2"

    def test_unknown_event_ignored(self, client):
        assert client.processEvent("TYPING_START", {"channel_id": "1"}) is None
