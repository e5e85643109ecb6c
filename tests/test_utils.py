import hashlib
import os
import tempfile
import threading
import unittest
from unittest import mock

from veeam_agent_updater.run_on_platform.base import CopyResult, FileSystemAccess
from veeam_agent_updater.run_on_platform.windows import ShareFileSystem
from veeam_agent_updater.utils import file_ops, integrity, path_utils
from veeam_agent_updater.utils.path_validator import SafePathValidator


class TestIntegrityUtils(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, name, data):
        path = os.path.join(self._tmp.name, name)
        with open(path, "wb") as f:
            f.write(data)
        return path

    def test_checksums(self):
        path = self.write("agent", b"test data")
        self.assertEqual(integrity.md5_checksum(path), hashlib.md5(b"test data").hexdigest())
        self.assertEqual(integrity.sha256_checksum(path), hashlib.sha256(b"test data").hexdigest())

    def test_files_match(self):
        first = self.write("a", b"agent v1")
        self.assertTrue(integrity.files_match(first, self.write("b", b"agent v1")))
        self.assertFalse(integrity.files_match(first, self.write("c", b"agent v2")))
        self.assertFalse(integrity.files_match(first, self.write("d", b"agent v1 longer")))


class TestPathUtils(unittest.TestCase):
    def test_unc_path(self):
        self.assertEqual(path_utils.unc_path("proxy01", "C$", "Program Files/Veeam/x64/VeeamAgent.exe"),
                         "\\\\proxy01\\C$\\Program Files\\Veeam\\x64\\VeeamAgent.exe")
        self.assertEqual(path_utils.unc_path("10.0.0.5", "\\D$\\", "\\Veeam\\VeeamAgent"),
                         "\\\\10.0.0.5\\D$\\Veeam\\VeeamAgent")

    def test_backup_path(self):
        self.assertEqual(path_utils.backup_path("\\\\h\\C$\\VeeamAgent", "2026_10_19_08_30_00"),
                         "\\\\h\\C$\\VeeamAgent_2026_10_19_08_30_00")

    def test_run_timestamp_format(self):
        stamp = path_utils.make_run_timestamp(0)
        self.assertRegex(stamp, r"^\d{4}_\d{2}_\d{2}_\d{2}_\d{2}_\d{2}$")

    def test_is_safe_template(self):
        self.assertEqual(SafePathValidator.is_safe_template("Veeam\\x64\\VeeamAgent.exe"), (True, "Safe"))
        self.assertFalse(SafePathValidator.is_safe_template("C:\\Veeam\\VeeamAgent")[0])
        self.assertFalse(SafePathValidator.is_safe_template("\\\\other\\C$\\VeeamAgent")[0])
        self.assertFalse(SafePathValidator.is_safe_template("Veeam/../VeeamAgent")[0])
        self.assertFalse(SafePathValidator.is_safe_template("   ")[0])
        self.assertFalse(SafePathValidator.is_safe_template(None)[0])


class TestFileOps(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.src = os.path.join(self._tmp.name, "VeeamAgent")
        with open(self.src, "wb") as f:
            f.write(b"agent")

    def tearDown(self):
        self._tmp.cleanup()

    def test_call_with_timeout_returns_value(self):
        self.assertEqual(file_ops.call_with_timeout(lambda a, b: a + b, 1, 2, 3), 5)

    def test_call_with_timeout_reraises(self):
        with self.assertRaises(ZeroDivisionError):
            file_ops.call_with_timeout(lambda: 1 / 0, 1)

    def test_call_with_timeout_expires(self):
        release = threading.Event()
        try:
            with self.assertRaises(file_ops.OperationTimeout):
                file_ops.call_with_timeout(release.wait, 0.05)
        finally:
            release.set()

    def test_path_exists_timeout_counts_as_not_found(self):
        release = threading.Event()
        try:
            with mock.patch("os.path.exists", side_effect=lambda path: release.wait(5)):
                self.assertFalse(file_ops.path_exists(self.src, 0.05))
                self.assertFalse(ShareFileSystem(timeout=0.05).exists(self.src))
        finally:
            release.set()

    def test_copy_timeout_is_a_copy_failure(self):
        release = threading.Event()
        dst = self.src + "_2026_10_19_08_30_00"
        try:
            with mock.patch("shutil.copy2", side_effect=lambda src, dst: release.wait(5)):
                with self.assertRaises(file_ops.OperationTimeout):
                    file_ops.copy_file(self.src, dst, 0.05)
                result = ShareFileSystem(timeout=0.05).copy(self.src, dst)
        finally:
            release.set()

        self.assertFalse(result)
        self.assertTrue(result.timed_out)
        self.assertIn("did not finish", result.error)

    def test_copy_failure_is_not_a_timeout(self):
        result = ShareFileSystem(timeout=5).copy(os.path.join(self._tmp.name, "absent"), self.src + "_copy")
        self.assertFalse(result)
        self.assertFalse(result.timed_out)

    def test_file_system_access_requires_content_check(self):
        class ExistsAndCopyOnly(FileSystemAccess):
            def exists(self, path):
                return True

            def copy(self, src, dst):
                return CopyResult(True)

        with self.assertRaises(TypeError):
            ExistsAndCopyOnly()

    def test_share_file_system_copy_and_exists(self):
        fs = ShareFileSystem(timeout=5)
        dst = self.src + "_2026_10_19_08_30_00"

        self.assertTrue(fs.exists(self.src))
        self.assertFalse(fs.exists(dst))
        self.assertTrue(fs.copy(self.src, dst).success)
        self.assertTrue(fs.same_content(self.src, dst))

    def test_share_file_system_copy_failure(self):
        fs = ShareFileSystem(timeout=5)
        result = fs.copy(self.src, os.path.join(self._tmp.name, "missing", "dir", "VeeamAgent"))
        self.assertFalse(result)
        self.assertTrue(result.error)
        self.assertFalse(fs.same_content(self.src, os.path.join(self._tmp.name, "nope")))


if __name__ == "__main__":
    unittest.main()
