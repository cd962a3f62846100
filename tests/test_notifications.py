import asyncio

import pytest
from fastapi import WebSocketDisconnect
from fastapi.websockets import WebSocketState

from conftest import auth
from soundmap_api.app.core.notifications import NotificationRelay
from soundmap_api.app.core.security import create_access_token


class FakeSocket:
    def __init__(self, fail: bool = False) -> None:
        self.application_state = WebSocketState.CONNECTED
        self.sent = []
        self.fail = fail

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(text)


class TestRelay:
    def test_routes_messages_by_user(self) -> None:
        async def scenario():
            relay = NotificationRelay()
            await relay.start()
            alice, bob = FakeSocket(), FakeSocket()
            await relay.register(1, alice)
            await relay.register(2, bob)
            await relay.send(1, "New comment", 201)
            assert await relay.connection_count() == 2
            await relay.stop()
            return alice, bob

        alice, bob = asyncio.run(scenario())
        assert alice.sent == ['{"message": "New comment", "code": 201}']
        assert bob.sent == []

    def test_failed_socket_is_dropped(self) -> None:
        async def scenario():
            relay = NotificationRelay()
            await relay.start()
            broken, healthy = FakeSocket(fail=True), FakeSocket()
            await relay.register(1, broken)
            await relay.register(1, healthy)
            await relay.send(1, "ping", 0)
            count = await relay.connection_count(1)
            await relay.stop()
            return count, healthy

        count, healthy = asyncio.run(scenario())
        assert count == 1
        assert len(healthy.sent) == 1

    def test_unregister(self) -> None:
        async def scenario():
            relay = NotificationRelay()
            await relay.start()
            ws = FakeSocket()
            await relay.register(1, ws)
            await relay.unregister(1, ws)
            await relay.send(1, "lost", 0)
            count = await relay.connection_count()
            await relay.stop()
            return count, ws

        count, ws = asyncio.run(scenario())
        assert count == 0
        assert ws.sent == []

    def test_send_without_running_relay_is_a_noop(self) -> None:
        asyncio.run(NotificationRelay().send(1, "nobody listens", 0))


class TestNotificationSocket:
    def test_comment_notifies_sound_owner(self, client, factory) -> None:
        jules = factory.user("Jules")
        stephane = factory.user("Stephane")
        sound = factory.sound(jules["id"], factory.category("Nature"))
        with client.websocket_connect(f"/notifications?token={jules['token']}") as ws:
            res = client.post("/comments", json={"sound": sound, "text": "Hi"}, headers=auth(stephane))
            assert res.status_code == 201
            assert ws.receive_json() == {"message": "New comment", "code": 201}

    def test_header_token_and_echo(self, client, factory) -> None:
        jules = factory.user("Jules")
        with client.websocket_connect("/notifications", headers=auth(jules)) as ws:
            ws.send_text("hello")
            assert ws.receive_text() == "Received your message: hello"

    def test_invalid_token_is_refused(self, client) -> None:
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/notifications?token=garbage"):
                pass

    def test_deleted_user_is_refused(self, client) -> None:
        token = create_access_token(4242, "user")
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(f"/notifications?token={token}"):
                pass
