from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

import httpx
from prometheus_client import CollectorRegistry

from dashboard_bff.application.ports.session_store_port import CredentialStorePort
from dashboard_bff.application.use_cases.proxy_dispatcher import ProxyDispatcher
from dashboard_bff.application.use_cases.session_manager import Clock, SessionManager
from dashboard_bff.config import Settings
from dashboard_bff.infrastructure.adapters.http.httpx_client import HttpxClient
from dashboard_bff.infrastructure.adapters.notification_adapter import PrometheusNotificationAdapter
from dashboard_bff.infrastructure.adapters.session.memory_store import InMemoryCredentialStore
from dashboard_bff.infrastructure.adapters.session.sqlite_store import SQLiteCredentialStore
from dashboard_bff.infrastructure.adapters.upstream.credential_issuer import (
    AuthEndpoints,
    UpstreamCredentialIssuer,
)
from dashboard_bff.infrastructure.adapters.upstream.identity_loader import UpstreamIdentityLoader

logger = logging.getLogger(__name__)


@dataclass
class BffContainer:
    """Everything the HTTP boundary needs; built at startup, closed at shutdown."""

    settings: Settings
    store: CredentialStorePort
    http: HttpxClient
    issuer: UpstreamCredentialIssuer
    sessions: SessionManager
    dispatcher: ProxyDispatcher
    registry: CollectorRegistry

    def close(self) -> None:
        self.http.close()
        self.store.close()


def build_store(settings: Settings) -> CredentialStorePort:
    if settings.session_store == "sqlite":
        return SQLiteCredentialStore(db_path=settings.session_db_path)
    if settings.session_store != "memory":
        raise ValueError(f"unknown SESSION_STORE: {settings.session_store!r}")
    return InMemoryCredentialStore()


def build_container(
    settings: Settings,
    *,
    transport: httpx.BaseTransport | None = None,
    clock: Clock | None = None,
) -> BffContainer:
    http = HttpxClient(
        settings.api_base_url,
        timeout=settings.http_timeout,
        connect_retries=settings.forward_connect_retries,
        transport=transport,
    )
    store = build_store(settings)
    registry = CollectorRegistry()
    notifier = PrometheusNotificationAdapter(registry)
    issuer = UpstreamCredentialIssuer(
        http,
        AuthEndpoints(
            pincode=settings.auth_pincode_path,
            otp=settings.auth_otp_path,
            refresh=settings.auth_refresh_path,
            forgot_password=settings.auth_forgot_password_path,
        ),
    )
    identity_loader = (
        UpstreamIdentityLoader(
            http,
            user_path=settings.identity_user_path,
            customer_path=settings.identity_customer_path,
        )
        if settings.capture_identity_on_login
        else None
    )
    sessions = SessionManager(
        store,
        issuer,
        identity_loader=identity_loader,
        refresh_window=timedelta(seconds=settings.token_refresh_buffer_seconds),
        clock=clock,
        notifier=notifier,
    )
    dispatcher = ProxyDispatcher(sessions, http, notifier=notifier)
    logger.info(
        "BFF wired: upstream=%s store=%s refresh_window=%ss",
        settings.api_base_url,
        settings.session_store,
        settings.token_refresh_buffer_seconds,
    )
    return BffContainer(
        settings=settings,
        store=store,
        http=http,
        issuer=issuer,
        sessions=sessions,
        dispatcher=dispatcher,
        registry=registry,
    )
