import json
import tempfile
import unittest
from pathlib import Path

from storage import (
    KEY_HISTORY,
    KEY_TASKS,
    KEY_TIMER,
    JsonFileStore,
    StoreDecodeError,
    StoreWriteError,
)


class JsonFileStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self._temp_dir.name)
        self.path = self.root / "nested" / "state.json"

    def tearDown(self) -> None:
        self._temp_dir.cleanup()

    def test_values_survive_reopening(self) -> None:
        JsonFileStore(self.path).set({KEY_TASKS: [{"id": "a", "title": "Write"}]})

        reopened = JsonFileStore(self.path)

        self.assertEqual(
            [{"id": "a", "title": "Write"}],
            reopened.get((KEY_TASKS,))[KEY_TASKS],
        )
        self.assertEqual(frozenset({KEY_TASKS}), reopened.stored_keys())

    def test_missing_file_resolves_defaults(self) -> None:
        store = JsonFileStore(self.path)

        self.assertEqual([], store.get((KEY_HISTORY,))[KEY_HISTORY])
        self.assertEqual("idle", store.get((KEY_TIMER,))[KEY_TIMER]["status"])
        self.assertFalse(self.path.exists())

    def test_writes_from_another_instance_are_picked_up(self) -> None:
        writer = JsonFileStore(self.path)
        reader = JsonFileStore(self.path)
        events: list[tuple[frozenset, dict]] = []
        reader.subscribe(lambda changed, values: events.append((changed, dict(values))))

        writer.set({KEY_TASKS: [{"id": "a"}]})
        self.assertEqual(frozenset({KEY_TASKS}), reader.refresh())

        writer.set({KEY_TASKS: [{"id": "a"}, {"id": "b"}]})
        self.assertEqual(2, len(reader.get((KEY_TASKS,))[KEY_TASKS]))

        self.assertEqual(
            [
                (frozenset({KEY_TASKS}), {KEY_TASKS: [{"id": "a"}]}),
                (frozenset({KEY_TASKS}), {KEY_TASKS: [{"id": "a"}, {"id": "b"}]}),
            ],
            events,
        )
        self.assertEqual(frozenset(), reader.refresh())

    def test_set_merges_with_external_changes(self) -> None:
        first = JsonFileStore(self.path)
        second = JsonFileStore(self.path)
        first.set({KEY_TASKS: [{"id": "a"}]})
        events: list[frozenset] = []
        second.subscribe(lambda changed, values: events.append(changed))

        second.set({KEY_HISTORY: [{"id": "h"}]})

        on_disk = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual([{"id": "a"}], on_disk[KEY_TASKS])
        self.assertEqual([{"id": "h"}], on_disk[KEY_HISTORY])
        self.assertEqual([frozenset({KEY_TASKS}), frozenset({KEY_HISTORY})], events)

    def test_failed_write_raises_and_keeps_previous_state(self) -> None:
        store = JsonFileStore(self.path)
        store.set({KEY_TASKS: [{"id": "a"}]})
        events: list[frozenset] = []
        store.subscribe(lambda changed, values: events.append(changed))

        with self.assertRaises(StoreWriteError):
            store.set({KEY_TASKS: [object()]})

        self.assertEqual([{"id": "a"}], store.get((KEY_TASKS,))[KEY_TASKS])
        self.assertEqual([{"id": "a"}], json.loads(self.path.read_text(encoding="utf-8"))[KEY_TASKS])
        self.assertEqual(["state.json"], sorted(p.name for p in self.path.parent.iterdir()))
        self.assertEqual([], events)

    def test_invalid_json_raises_decode_error(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{not json", encoding="utf-8")

        with self.assertRaises(StoreDecodeError):
            JsonFileStore(self.path)

    def test_non_object_document_raises_decode_error(self) -> None:
        store = JsonFileStore(self.path)
        self.path.parent.mkdir(parents=True)
        self.path.write_text("[1, 2, 3]", encoding="utf-8")

        with self.assertRaises(StoreDecodeError):
            store.get()

    def test_empty_file_is_treated_as_empty_store(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text("", encoding="utf-8")

        store = JsonFileStore(self.path)

        self.assertEqual(frozenset(), store.stored_keys())


if __name__ == "__main__":
    unittest.main()
