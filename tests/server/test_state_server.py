import json
import socket
import unittest
from http import HTTPStatus

from websockets.datastructures import Headers
from websockets.http11 import Request
from websockets.sync.client import connect

from app_config_schema import ServerSettings
from contracts.notifications import Notification
from server import ServerConfigurationError, StateServer, StateServerConfig
from storage import KEY_TASKS, MemoryStore


class RespondingConnection:
    def respond(self, status: HTTPStatus, text: str):
        return status, text


def _free_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class StateServerConfigTests(unittest.TestCase):
    def test_from_settings_copies_values(self) -> None:
        config = StateServerConfig.from_settings(
            ServerSettings(enabled=True, host=" 0.0.0.0 ", port=9000)
        )

        self.assertTrue(config.enabled)
        self.assertEqual("0.0.0.0", config.host)
        self.assertEqual(9000, config.port)
        self.assertEqual("/ws", config.websocket_path)
        self.assertEqual("/healthz", config.healthz_path)

    def test_rejects_empty_host(self) -> None:
        with self.assertRaises(ServerConfigurationError):
            StateServerConfig(host="  ")

    def test_rejects_port_out_of_range(self) -> None:
        with self.assertRaises(ServerConfigurationError):
            StateServerConfig(port=0)
        with self.assertRaises(ServerConfigurationError):
            StateServerConfig(port=70000)


class StateServerRoutingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.server = StateServer(StateServerConfig(enabled=True), MemoryStore())

    def _route(self, path: str):
        return self.server._process_request(RespondingConnection(), Request(path, Headers()))

    def test_websocket_path_is_upgraded(self) -> None:
        self.assertIsNone(self._route("/ws"))
        self.assertIsNone(self._route("/ws?client=1"))

    def test_healthz(self) -> None:
        self.assertEqual((HTTPStatus.OK, "ok\n"), self._route("/healthz"))

    def test_unknown_path_is_not_found(self) -> None:
        self.assertEqual(HTTPStatus.NOT_FOUND, self._route("/index.html")[0])

    def test_publishing_while_stopped_is_a_no_op(self) -> None:
        self.assertFalse(self.server.is_running)

        self.server.notify(Notification(kind="alarm", message="Tea"))
        self.server._on_store_change(frozenset({KEY_TASKS}), {KEY_TASKS: []})
        self.server.stop()


class StateServerLiveTests(unittest.TestCase):
    def test_observer_receives_hello_changes_and_notifications(self) -> None:
        store = MemoryStore()
        port = _free_port()
        server = StateServer(StateServerConfig(enabled=True, port=port), store)
        server.start(timeout_seconds=5.0)
        try:
            with connect(f"ws://127.0.0.1:{port}/ws", open_timeout=5) as client:
                hello = json.loads(client.recv(timeout=5))
                self.assertEqual("hello", hello["type"])
                self.assertEqual([], hello["state"][KEY_TASKS])

                store.set({KEY_TASKS: [{"id": "t1"}]})
                changed = json.loads(client.recv(timeout=5))
                self.assertEqual("state_changed", changed["type"])
                self.assertEqual([KEY_TASKS], changed["keys"])
                self.assertEqual([{"id": "t1"}], changed["values"][KEY_TASKS])

                server.notify(Notification(kind="alarm", message="Tea"))
                notification = json.loads(client.recv(timeout=5))
                self.assertEqual("notification", notification["type"])
                self.assertEqual("Tea", notification["message"])
        finally:
            server.stop()

        self.assertFalse(server.is_running)


if __name__ == "__main__":
    unittest.main()
