"""OpenTelemetry configuration helpers."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI
from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_NAMESPACE, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

from ..config import LedgerSettings

logger = logging.getLogger(__name__)

_TELEMETRY_INITIALISED = False
_METRIC_EXPORT_INTERVAL_MS = 10000


def _build_resource(settings: LedgerSettings) -> Resource:
    attributes: dict[str, Any] = {
        SERVICE_NAME: settings.telemetry_service_name or settings.app_name,
        SERVICE_NAMESPACE: "stock-ledger",
    }
    return Resource.create(attributes)


def setup_telemetry(app: FastAPI, settings: LedgerSettings, engine: AsyncEngine | None = None) -> bool:
    """Configure OTLP exporters and instrument FastAPI plus SQLAlchemy.

    Returns ``True`` when instrumentation is active after the call.
    """

    global _TELEMETRY_INITIALISED  # noqa: PLW0603 - single initialisation guard

    if _TELEMETRY_INITIALISED:
        return True

    if not settings.telemetry_enabled:
        logger.info("Telemetry disabled via configuration")
        return False

    resource = _build_resource(settings)
    sampler = ParentBased(TraceIdRatioBased(settings.telemetry_sample_ratio))
    exporter_options = _build_exporter_options(settings)

    tracer_provider = _configure_tracing(resource, sampler, exporter_options)
    meter_provider = _configure_metrics(resource, exporter_options)

    FastAPIInstrumentor.instrument_app(
        app,
        tracer_provider=tracer_provider,
        meter_provider=meter_provider,
    )
    if engine is not None:
        SQLAlchemyInstrumentor().instrument(
            engine=engine.sync_engine,
            tracer_provider=tracer_provider,
        )

    _TELEMETRY_INITIALISED = True
    logger.info("Telemetry initialised and instrumentation enabled")
    return True


# Helpers

def _build_exporter_options(settings: LedgerSettings) -> dict[str, Any]:
    options: dict[str, Any] = {"insecure": settings.telemetry_otlp_insecure}
    if settings.telemetry_otlp_endpoint:
        options["endpoint"] = settings.telemetry_otlp_endpoint
    return options


def _configure_tracing(
    resource: Resource,
    sampler: ParentBased,
    exporter_options: dict[str, Any],
) -> TracerProvider:
    tracer_provider = TracerProvider(resource=resource, sampler=sampler)
    tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(**exporter_options)))
    trace.set_tracer_provider(tracer_provider)
    return tracer_provider


def _configure_metrics(
    resource: Resource,
    exporter_options: dict[str, Any],
) -> MeterProvider:
    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(**exporter_options),
        export_interval_millis=_METRIC_EXPORT_INTERVAL_MS,
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    return meter_provider


__all__ = ["setup_telemetry"]
