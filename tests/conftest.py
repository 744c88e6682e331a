import sys
from pathlib import Path

import orjson
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

SRC = ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


TRUSTED_SUBJECT = (
    "OID.2.5.4.97=class:3,T=Engineer,SURNAME=Doe,GIVENNAME=Jane,ST=KA,C=IN,"
    "OU=Catalogue,O=Example Org,EMAILADDRESS=jane@example.org"
)


@pytest.fixture
def credentials_file(tmp_path: Path) -> Path:
    path = tmp_path / "user.list"
    path.write_bytes(
        orjson.dumps(
            {
                "writer": {"password": "s3cret", "write_permission": True},
                "reader": {"password": "r3ad", "write_permission": False},
            }
        )
    )
    return path
