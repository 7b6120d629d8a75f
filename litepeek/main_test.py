import io
import sqlite3
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

from .main import main


class TestMain(unittest.TestCase):
    def setUp(self):
        self._directory = tempfile.TemporaryDirectory()
        self.database_path = Path(self._directory.name) / "fruit.db"

        connection = sqlite3.connect(self.database_path)
        try:
            _ = connection.execute("PRAGMA page_size = 512")
            _ = connection.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
            _ = connection.execute("INSERT INTO t (name) VALUES ('a'), ('b'), ('c')")
            connection.commit()
        finally:
            connection.close()

    def tearDown(self):
        self._directory.cleanup()

    def run_main(self, *arguments: str) -> tuple[int, str, str]:
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            status = main([str(self.database_path), *arguments])
        return status, stdout.getvalue(), stderr.getvalue()

    def test_dbinfo(self):
        status, output, _ = self.run_main(".dbinfo")
        self.assertEqual(0, status)
        self.assertEqual(
            "database page size: 512\nnumber of tables: 1\nnumber of indexes: 0\n",
            output,
        )

    def test_tables(self):
        status, output, _ = self.run_main(".tables")
        self.assertEqual(0, status)
        self.assertEqual("t\n", output)

    def test_count(self):
        status, output, _ = self.run_main("SELECT COUNT(*) FROM t")
        self.assertEqual(0, status)
        self.assertEqual("3\n", output)

    def test_count_table_named_like_a_keyword(self):
        connection = sqlite3.connect(self.database_path)
        try:
            _ = connection.execute("CREATE TABLE data (value INTEGER)")
            _ = connection.execute("INSERT INTO data VALUES (1), (2)")
            connection.commit()
        finally:
            connection.close()

        status, output, _ = self.run_main("SELECT COUNT(*) FROM data")
        self.assertEqual(0, status)
        self.assertEqual("2\n", output)

    def test_missing_table(self):
        status, output, errors = self.run_main("SELECT COUNT(*) FROM u")
        self.assertEqual(1, status)
        self.assertEqual("", output)
        self.assertIn("no such table: u", errors)

    def test_unsupported_command(self):
        status, output, errors = self.run_main(".schema")
        self.assertEqual(1, status)
        self.assertEqual("", output)
        self.assertIn("Invalid command: .schema", errors)

    def test_missing_file(self):
        self.database_path = self.database_path.with_name("missing.db")
        status, _, errors = self.run_main(".dbinfo")
        self.assertEqual(1, status)
        self.assertIn("missing.db", errors)


if __name__ == "__main__":
    _ = unittest.main()
