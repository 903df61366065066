import os
import shutil
import tempfile
import unittest

from linemarks.services.documents import (
    TextChange, TextDocument, FileDocument, FileRename, operations_from_changes, resolve_rename_kinds,
)


class TestTextChange(unittest.TestCase):

    def test_inserted_line_count_counts_line_breaks(self):
        self.assertEqual(TextChange(0, 0, 0, 0, "").inserted_line_count, 0)
        self.assertEqual(TextChange(0, 0, 0, 0, "abc").inserted_line_count, 0)
        self.assertEqual(TextChange(0, 0, 0, 0, "a\nb\n").inserted_line_count, 2)

    def test_operations_keep_given_order(self):
        changes = [TextChange(9, 0, 9, 0, "\n"), TextChange(2, 3, 4, 0, "x")]
        ops = operations_from_changes(changes)
        self.assertEqual([(o.start_line, o.end_line, o.inserted_line_count, o.start_character) for o in ops],
                         [(9, 9, 1, 0), (2, 4, 0, 3)])
        self.assertEqual(ops[1].replaced_line_count, 2)
        self.assertEqual(ops[1].delta, -2)


class TestDocuments(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_text_document_line_at(self):
        document = TextDocument("a\r\nb\nc")
        self.assertEqual(document.line_at(0), "a")
        self.assertEqual(document.line_at(2), "c")
        self.assertIsNone(document.line_at(3))
        self.assertIsNone(document.line_at(-1))

    def test_file_document_reads_disk(self):
        path = os.path.join(self.temp_dir, "notes.txt")
        with open(path, 'w', encoding='utf-8') as f:
            f.write("one\ntwo\n")
        document = FileDocument(path)
        self.assertEqual(document.line_at(1), "two")

    def test_missing_file_document_is_empty(self):
        document = FileDocument(os.path.join(self.temp_dir, "missing.txt"))
        self.assertEqual(document.line_at(0), "")
        self.assertIsNone(document.line_at(1))

    def test_rename_kinds_use_resolver_only_when_unknown(self):
        os.makedirs(os.path.join(self.temp_dir, "lib"))
        renames = [
            FileRename("/old/src", os.path.join(self.temp_dir, "lib")),
            FileRename("/old/a.txt", "/new/a.txt", is_directory=False),
        ]
        resolved = resolve_rename_kinds(renames)
        self.assertEqual([r.is_directory for r in resolved], [True, False])
        self.assertIsNone(renames[0].is_directory)


if __name__ == '__main__':
    unittest.main()
