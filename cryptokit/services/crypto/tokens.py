"""
Token Composer/Verifier

Issues and checks self-describing bearer tokens of the form
``encodedPayload.signature[.encodedExpiry]``. Every segment uses the
configured transport encoding. The signature covers the canonical JSON
serialization of the payload, never its transport encoding.
"""

from datetime import datetime
from typing import Any, Optional, Tuple

import structlog
from pydantic import BaseModel

from .codec import decode, decode_text, deserialize, encode, encode_text, serialize
from .errors import MalformedEncoding, MalformedToken
from .expiry import Clock, as_utc, format_expiry, parse_expiry, resolve_expiry, utc_now
from .signature import Key, SignatureEngine
from .token_models import (
    BearerToken,
    PayloadSource,
    TokenOptions,
    TokenVerification,
    VerifyOptions,
)

log = structlog.get_logger(__name__)


class IssuedToken(BaseModel):
    """A freshly created token and its resolved expiry"""
    token: str
    expires_at: Optional[datetime] = None


def _merge(model_cls, options, overrides: dict):
    if options is None:
        return model_cls(**overrides)
    if not overrides:
        return options
    return model_cls(**{**options.model_dump(exclude_unset=True), **overrides})


def _malformed(reason: str) -> MalformedToken:
    log.warning("token.malformed", reason=reason)
    return MalformedToken(reason)


class TokenService:
    """
    Service for composing and verifying bearer tokens

    Provides:
    - Token creation with optional expiry
    - Signature and expiry checks reported separately
    - Verification against an embedded or a caller-supplied payload

    No state is kept between calls; every token carries all it needs.
    """

    def __init__(
        self,
        signer: Optional[SignatureEngine] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize TokenService

        Args:
            signer: SignatureEngine used for signing and verification
            clock: Callable returning the current aware UTC datetime
        """
        self._signer = signer or SignatureEngine()
        self._clock = clock or utc_now

    def _now(self) -> datetime:
        return as_utc(self._clock())

    def issue(
        self,
        payload: Any,
        key: Key,
        options: Optional[TokenOptions] = None,
        **overrides,
    ) -> IssuedToken:
        """
        Create a token and report its expiry.

        Args:
            payload: Any JSON-serializable value
            key: Signing key (private PEM/key object, or HMAC secret)
            options: TokenOptions; keyword overrides build or amend them

        Returns:
            IssuedToken with the token string and resolved expiry

        Raises:
            InvalidExpirySpec: If the expiry cannot be interpreted
            SerializationError: If the payload is not JSON-serializable
            SignatureFailed: If the key is unusable for the algorithm
        """
        opts = _merge(TokenOptions, options, overrides)

        expires_at = None
        encoded_expiry = None
        if opts.expiry is not None:
            expires_at = resolve_expiry(opts.expiry, now=self._now())
            encoded_expiry = encode_text(format_expiry(expires_at), opts.encoding)

        serialized = serialize(payload)
        signature = self._signer.sign(serialized, key, opts.algorithm, opts.passphrase)
        encoded_payload = encode_text(serialized, opts.encoding) if opts.embed_payload else ""

        token = BearerToken(
            encoded_payload=encoded_payload,
            signature=encode(signature, opts.encoding),
            encoded_expiry=encoded_expiry,
        ).to_string()

        log.debug(
            "token.issued",
            algorithm=opts.algorithm.value,
            encoding=opts.encoding.value,
            embedded=opts.embed_payload,
            expires_at=expires_at.isoformat() if expires_at else None,
        )
        return IssuedToken(token=token, expires_at=expires_at)

    def create_token(
        self,
        payload: Any,
        key: Key,
        options: Optional[TokenOptions] = None,
        **overrides,
    ) -> str:
        """
        Create a token string.

        See ``issue`` for arguments and errors.
        """
        return self.issue(payload, key, options, **overrides).token

    def verify_token(
        self,
        token: str,
        key: Key,
        options: Optional[VerifyOptions] = None,
        **overrides,
    ) -> TokenVerification:
        """
        Verify a token's signature and check its expiry.

        A well-formed token with a bad signature yields ``verified=False``;
        only structurally broken tokens raise. ``payload`` in the result is
        set only when the signature verified. A verified payload that is not JSON
        is returned as the raw string.

        Args:
            token: Token string
            key: Verification key (public or private PEM/key object, or HMAC secret)
            options: VerifyOptions; keyword overrides build or amend them

        Returns:
            TokenVerification with expires_at, expired and verified

        Raises:
            MalformedToken: If the token has the wrong shape or an undecodable segment
            SignatureFailed: If the key is malformed or the algorithm unknown
        """
        opts = _merge(VerifyOptions, options, overrides)
        bearer = BearerToken.parse(token)

        serialized, signature = self._recover(bearer, opts)
        expires_at = self._read_expiry(bearer, opts)

        verified = self._signer.verify(
            serialized, signature, key, opts.algorithm, opts.passphrase
        )
        expired = self._now() > expires_at if expires_at is not None else False

        payload = None
        if verified:
            if opts.payload_source is PayloadSource.SUPPLIED:
                payload = opts.payload
            else:
                try:
                    payload = deserialize(serialized)
                except MalformedEncoding:
                    # signed outside create_token; hand back the raw text
                    payload = serialized

        log.debug("token.verified", verified=verified, expired=expired)
        return TokenVerification(
            expires_at=expires_at,
            expired=expired,
            verified=verified,
            payload=payload,
        )

    def decode_payload(self, token: str, encoding="hex") -> Any:
        """
        Read the embedded payload without checking the signature.

        Only for display or routing; never trust the result.
        """
        bearer = BearerToken.parse(token)
        try:
            return deserialize(decode_text(bearer.encoded_payload, encoding))
        except MalformedEncoding as e:
            raise _malformed("Payload segment is not decodable") from e

    def _recover(self, bearer: BearerToken, opts: VerifyOptions) -> Tuple[str, bytes]:
        if opts.payload_source is PayloadSource.SUPPLIED:
            serialized = serialize(opts.payload)
        else:
            try:
                serialized = decode_text(bearer.encoded_payload, opts.encoding)
            except MalformedEncoding as e:
                raise _malformed("Payload segment is not decodable") from e
        try:
            signature = decode(bearer.signature, opts.encoding)
        except MalformedEncoding as e:
            raise _malformed("Signature segment is not decodable") from e
        return serialized, signature

    def _read_expiry(self, bearer: BearerToken, opts: VerifyOptions) -> Optional[datetime]:
        if bearer.encoded_expiry is None:
            return None
        try:
            return parse_expiry(decode_text(bearer.encoded_expiry, opts.encoding))
        except ValueError as e:
            raise _malformed("Expiry segment is not a timestamp") from e


_default_service = TokenService()


def create_token(payload: Any, key: Key, options: Optional[TokenOptions] = None, **overrides) -> str:
    """Create a token with the default service"""
    return _default_service.create_token(payload, key, options, **overrides)


def verify_token(
    token: str,
    key: Key,
    options: Optional[VerifyOptions] = None,
    **overrides,
) -> TokenVerification:
    """Verify a token with the default service"""
    return _default_service.verify_token(token, key, options, **overrides)
