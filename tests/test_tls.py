import logging
import ssl

from conftest import CERT, KEY, OTHER_KEY
from dualserve.service.tls import TlsCredential, load_credentials


def _failures(caplog):
    return [r for r in caplog.records if getattr(r, "event", None) == "tls_load_failed"]


def test_loads_valid_pair():
    credential = load_credentials(str(CERT), str(KEY))
    assert isinstance(credential, TlsCredential)
    assert isinstance(credential.context, ssl.SSLContext)
    assert credential.cert_path == str(CERT)
    assert credential.context.minimum_version == ssl.TLSVersion.TLSv1_2


def test_missing_files_return_none_and_log_paths(caplog, tmp_path):
    cert = str(tmp_path / "missing.crt")
    key = str(tmp_path / "missing.key")
    with caplog.at_level(logging.ERROR):
        assert load_credentials(cert, key) is None

    [record] = _failures(caplog)
    assert record.cert == cert
    assert record.key == key
    assert "FileNotFoundError" in record.error


def test_mismatched_pair_returns_none(caplog):
    with caplog.at_level(logging.ERROR):
        assert load_credentials(str(CERT), str(OTHER_KEY)) is None
    assert len(_failures(caplog)) == 1


def test_malformed_cert_returns_none(caplog, tmp_path):
    bogus = tmp_path / "bogus.crt"
    bogus.write_text("not a certificate\n")
    with caplog.at_level(logging.ERROR):
        assert load_credentials(str(bogus), str(KEY)) is None
    assert len(_failures(caplog)) == 1
