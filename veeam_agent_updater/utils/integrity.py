import hashlib


def _file_digest(file_path: str, algorithm: str) -> str:
    digest = hashlib.new(algorithm)
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(64 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def md5_checksum(file_path: str) -> str:
    return _file_digest(file_path, "md5")


def sha256_checksum(file_path: str) -> str:
    return _file_digest(file_path, "sha256")


def files_match(first_path: str, second_path: str) -> bool:
    """Compare two files by size and MD5"""
    with open(first_path, "rb") as f1, open(second_path, "rb") as f2:
        f1.seek(0, 2)
        f2.seek(0, 2)
        if f1.tell() != f2.tell():
            return False
    return md5_checksum(first_path) == md5_checksum(second_path)
