import unittest
from pathlib import Path

from lectureplan.config import DEFAULT_API_URL, Settings, default_snapshot_path


class TestSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        s = Settings.from_env({})
        self.assertEqual(s.api_url, DEFAULT_API_URL)
        self.assertIsNone(s.token)
        self.assertEqual(s.timeout, 30.0)
        self.assertEqual(s.snapshot_path, default_snapshot_path())
        self.assertEqual((s.window.start, s.window.end), (480, 1020))

    def test_from_env(self) -> None:
        s = Settings.from_env(
            {
                "LECTUREPLAN_API_URL": "https://portal.example/api/",
                "LECTUREPLAN_TOKEN": "secret",
                "LECTUREPLAN_TIMEOUT": "12.5",
                "LECTUREPLAN_SNAPSHOT": "/tmp/snap.json",
                "LECTUREPLAN_DAY_START": "07:30",
                "LECTUREPLAN_DAY_END": "20:00",
            }
        )
        self.assertEqual(s.api_url, "https://portal.example/api")
        self.assertEqual(s.token, "secret")
        self.assertEqual(s.timeout, 12.5)
        self.assertEqual(s.snapshot_path, Path("/tmp/snap.json"))
        self.assertEqual((s.window.start, s.window.end), (450, 1200))

    def test_bad_timeout(self) -> None:
        with self.assertRaises(ValueError):
            Settings.from_env({"LECTUREPLAN_TIMEOUT": "soon"})


if __name__ == "__main__":
    unittest.main()
