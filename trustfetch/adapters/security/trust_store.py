# /trustfetch/adapters/security/trust_store.py
from __future__ import annotations

import logging
import re
import ssl
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

LOG = logging.getLogger("adapter.trust_store")

DEFAULT_CA_PATH = Path("security") / "ca.pem"

_PEM_CERT_RE = re.compile(
    r"-----BEGIN CERTIFICATE-----\s*.+?\s*-----END CERTIFICATE-----",
    re.DOTALL,
)


class TrustStoreError(Exception):
    """The trust store could not be assembled; nothing may go on the wire."""


@dataclass(frozen=True, slots=True)
class TrustStore:
    """Platform default anchors plus exactly one custom root CA.

    Both client contexts are assembled by TrustStoreBuilder.build(), so handing
    one out never touches the filesystem again. Treat them as read-only.
    """

    ca_path: Path
    ca_der: bytes
    default_ca_count: int
    verified_context: ssl.SSLContext = field(repr=False, compare=False)
    unverified_context: ssl.SSLContext = field(repr=False, compare=False)

    def ssl_context(self, *, verify: bool = True) -> ssl.SSLContext:
        return self.verified_context if verify else self.unverified_context


class TrustStoreBuilder:
    def __init__(
        self,
        cert_path: str | Path = DEFAULT_CA_PATH,
        *,
        base_dir: str | Path | None = None,
        context_factory: Callable[[], ssl.SSLContext] = ssl.create_default_context,
        log: logging.Logger | None = None,
    ) -> None:
        self._cert_path = Path(cert_path)
        self._base_dir = Path(base_dir) if base_dir is not None else None
        self._context_factory = context_factory
        self._log = log or LOG

    def _resolve_path(self) -> Path:
        if self._cert_path.is_absolute():
            return self._cert_path
        return (self._base_dir or Path.cwd()) / self._cert_path

    def _load_platform_defaults(self) -> ssl.SSLContext:
        try:
            return self._context_factory()
        except (ssl.SSLError, OSError) as e:
            raise TrustStoreError(f"unable to read platform certificates: {e}") from e

    @staticmethod
    def _read_single_pem(path: Path) -> str:
        try:
            raw = path.read_bytes().decode("utf-8", errors="replace")
        except OSError as e:
            raise TrustStoreError(f"unable to read CA certificate {path}: {e}") from e

        blocks = _PEM_CERT_RE.findall(raw)
        if len(blocks) != 1:
            raise TrustStoreError(
                f"expected exactly one PEM certificate in {path}, found {len(blocks)}"
            )
        return blocks[0]

    @staticmethod
    def _add_root(ctx: ssl.SSLContext, der: bytes, path: Path) -> None:
        try:
            ctx.load_verify_locations(cadata=der)
        except ssl.SSLError as e:
            raise TrustStoreError(f"could not add root certificate {path} to pool: {e}") from e

    def build(self) -> TrustStore:
        path = self._resolve_path()
        verified = self._load_platform_defaults()
        default_count = verified.cert_store_stats().get("x509_ca", 0)

        pem = self._read_single_pem(path)
        try:
            der = ssl.PEM_cert_to_DER_cert(pem)
        except ValueError as e:
            raise TrustStoreError(f"could not add root certificate {path} to pool: {e}") from e
        self._add_root(verified, der, path)
        verified.check_hostname = True
        verified.verify_mode = ssl.CERT_REQUIRED

        unverified = self._load_platform_defaults()
        self._add_root(unverified, der, path)
        # check_hostname has to go first or CERT_NONE is refused
        unverified.check_hostname = False
        unverified.verify_mode = ssl.CERT_NONE

        self._log.info(
            "trust_store.built",
            extra={"extra": {"ca_path": str(path), "platform_anchors": default_count}},
        )
        return TrustStore(
            ca_path=path,
            ca_der=der,
            default_ca_count=default_count,
            verified_context=verified,
            unverified_context=unverified,
        )
