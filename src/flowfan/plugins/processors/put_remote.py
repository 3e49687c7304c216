"""PutRemote transfer processor.

Streams a unit's content and attributes to a remote input port in one
send/confirm/complete transaction. The remote URL and port may be attribute
expressions, so each unit can pick its own destination.

Routing:
- success: the transaction completed.
- failure: anything went wrong. The unit is penalized so the host holds it
  back before it can be fetched again.
"""

from typing import Any
from urllib.parse import urlparse

from pydantic import Field, field_validator

from flowfan.contracts import FlowUnit, ProcessErrorCategory, ProcessErrorReason, ProcessResult, Relationship
from flowfan.core.expressions import AttributeExpression, ExpressionError
from flowfan.plugins.base import BaseProcessor
from flowfan.plugins.clients.transfer import (
    TransferClientConfig,
    TransferClientFactory,
    TransferError,
    http_client_factory,
)
from flowfan.plugins.config_base import PluginConfig, expression_field
from flowfan.plugins.context import ProcessContext


class PutRemoteConfig(PluginConfig):
    """Configuration for the remote transfer processor."""

    remote_url: str = Field(..., description="Base URL of the remote instance (attribute expression)")
    remote_input_port: str = Field(..., description="Name of the remote input port (attribute expression)")
    use_compression: bool = Field(default=False, description="Gzip request bodies")
    penalty_seconds: float = Field(default=30.0, ge=0, description="Delay before a failed unit is retried")
    timeout_seconds: float = Field(default=30.0, gt=0, description="Per-request timeout")

    @field_validator("remote_url", "remote_input_port")
    @classmethod
    def validate_expressions(cls, v: str) -> str:
        return expression_field(v)


class PutRemote(BaseProcessor):
    """Transfer each unit to a remote input port."""

    name = "put_remote"
    plugin_version = "1.0.0"
    relationships = frozenset({Relationship.SUCCESS, Relationship.FAILURE})
    config_model = PutRemoteConfig

    def __init__(self, config: dict[str, Any], *, client_factory: TransferClientFactory | None = None) -> None:
        super().__init__(config)
        cfg = PutRemoteConfig.from_dict(config)
        self._url_expr = AttributeExpression(cfg.remote_url)
        self._port_expr = AttributeExpression(cfg.remote_input_port)
        self._use_compression = cfg.use_compression
        self._penalty_seconds = cfg.penalty_seconds
        self._timeout_seconds = cfg.timeout_seconds
        self._client_factory = client_factory if client_factory is not None else http_client_factory

    def process(self, unit: FlowUnit, ctx: ProcessContext) -> ProcessResult:
        url: str | None = None
        port: str | None = None
        try:
            url = self._url_expr.evaluate(unit.attributes)
            port = self._port_expr.evaluate(unit.attributes)
            _check_destination(url, port)
            self._transfer(unit, TransferClientConfig(url, port, self._use_compression, self._timeout_seconds))
        except (ExpressionError, TransferError) as e:
            ctx.report_error(
                "remote transfer failed",
                cause=e,
                unit_id=unit.unit_id,
                remote_url=url,
                remote_input_port=port,
            )
            category = (
                ProcessErrorCategory.INVALID_ATTRIBUTE_NAME if isinstance(e, ExpressionError) else ProcessErrorCategory.TRANSFER_FAILED
            )
            return ProcessResult.failed(
                unit,
                ProcessErrorReason(reason=category, detail=str(e)),
                penalty_seconds=self._penalty_seconds,
            )
        return ProcessResult.routed(unit, Relationship.SUCCESS)

    def _transfer(self, unit: FlowUnit, client_config: TransferClientConfig) -> None:
        client = self._client_factory(client_config)
        try:
            transaction = client.create_transaction()
            transaction.send(unit.content, unit.attributes)
            transaction.confirm()
            transaction.complete()
        finally:
            client.close()


def _check_destination(url: str, port: str) -> None:
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ExpressionError(f"remote_url is not a valid URL: {url!r} ({e})") from e
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ExpressionError(f"remote_url must evaluate to an http(s) URL, got {url!r}")
    if not port:
        raise ExpressionError("remote_input_port evaluated to an empty name")
