"""
HTTP session with connection pooling, connection-level retry, and CA bundle.

Retries here only cover short blips inside a single sync attempt. The
queue's own retry budget counts whole attempts, one per sync pass.

A POST that reached the server is never re-sent from here: a read timeout
or a 5xx comes straight back as one failed attempt. Only a connection that
was never established is retried, once.
"""

import os

import certifi
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

_retry_strategy = Retry(
    total=1,
    connect=1,
    read=0,
    backoff_factor=0.5,
    status_forcelist=[502, 503, 504],
    allowed_methods=["HEAD", "GET"],          # POST only on connect errors
    raise_on_status=False,
)


def _get_ca_bundle():
    """Get the CA bundle path. Priority: env var → certifi."""
    env_ca = os.environ.get("REQUESTS_CA_BUNDLE") or os.environ.get("SSL_CERT_FILE")
    if env_ca and os.path.isfile(env_ca):
        return env_ca
    return certifi.where()


def create_session():
    """Create a new requests.Session with connection pooling, retry, and SSL."""
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=1,
        pool_maxsize=2,
        max_retries=_retry_strategy,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = _get_ca_bundle()
    return session


def reset_session(session):
    """Close and recreate the HTTP session (fixes stale connections)."""
    try:
        session.close()
    except Exception:
        pass
    return create_session()
