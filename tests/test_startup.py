"""
End-to-end tests for startup resolution and the app lifespan.
"""
from unittest.mock import patch

import main

import pytest
from fastapi.testclient import TestClient

from fibonatix_queue.errors import ConfigurationError, DuplicateRegistrationError, NotInitializedError
from fibonatix_queue.queue import MongoQueueService, RedisQueueService
from fibonatix_queue.registry import Capability
from fibonatix_queue.security import PlainSettings, SecureSettings
from fibonatix_queue.startup import bootstrap, configure_services
from main import create_app, run


class TestConfigureServices:
    """Test resolution of configuration into the registry"""

    def test_secure_redis_scenario(self, registry, make_config):
        config = make_config(
            transform="true",
            connection_string="cs1",
            password="p1",
            algorithm="AES",
            service="Redis",
        )

        configure_services(registry, config)

        settings = registry.get(Capability.SETTINGS)
        assert settings == SecureSettings(connection_string="cs1", password="p1", algorithm="AES")

        backend = registry.get(Capability.QUEUE_BACKEND)
        assert isinstance(backend, RedisQueueService)
        assert not isinstance(backend, MongoQueueService)
        assert backend.settings is settings
        assert registry.get(Capability.QUEUE_BACKEND) is backend

    @patch("fibonatix_queue.queue.factory.MongoClient")
    def test_plain_mongo_scenario(self, mongo_client_cls, registry, make_config):
        config = make_config(
            transform="false",
            connection_string="mongodb://queue@localhost:27017",
            service="MongoDB",
        )

        configure_services(registry, config)

        assert isinstance(registry.get(Capability.SETTINGS), PlainSettings)
        assert isinstance(registry.get(Capability.QUEUE_BACKEND), MongoQueueService)

    @pytest.mark.parametrize("transform", ["true", "false"])
    def test_exactly_one_settings_variant(self, registry, make_config, transform):
        configure_services(registry, make_config(transform=transform, algorithm="AES"))

        settings = registry.get(Capability.SETTINGS)
        assert isinstance(settings, SecureSettings) == (transform == "true")
        assert isinstance(settings, PlainSettings) == (transform == "false")

    def test_invalid_transform_registers_nothing(self, registry, make_config):
        with pytest.raises(ConfigurationError) as exc_info:
            configure_services(registry, make_config(transform="not-a-bool"))

        assert exc_info.value.key == "Transform"
        with pytest.raises(NotInitializedError):
            registry.get(Capability.SETTINGS)
        with pytest.raises(NotInitializedError):
            registry.get(Capability.QUEUE_BACKEND)

    @pytest.mark.parametrize("service", [None, "", "Postgres", "redis"])
    def test_unrecognized_service_fails_fast(self, registry, make_config, service):
        with pytest.raises(ConfigurationError) as exc_info:
            configure_services(registry, make_config(service=service))

        assert exc_info.value.key == "Service"
        assert not registry.is_registered(Capability.SETTINGS)
        assert not registry.is_registered(Capability.QUEUE_BACKEND)

    def test_second_resolution_is_rejected(self, registry, make_config):
        configure_services(registry, make_config())
        backend = registry.get(Capability.QUEUE_BACKEND)

        with pytest.raises(DuplicateRegistrationError):
            configure_services(registry, make_config(service="MongoDB"))

        assert registry.get(Capability.QUEUE_BACKEND) is backend

    def test_azure_clients_skipped_when_not_configured(self, registry, make_config):
        configure_services(registry, make_config())

        assert not registry.is_registered(Capability.BLOB_CLIENT)
        assert not registry.is_registered(Capability.QUEUE_CLIENT)

    @patch("fibonatix_queue.azure_clients.factory.QueueServiceClient")
    @patch("fibonatix_queue.azure_clients.factory.BlobServiceClient")
    def test_azure_clients_registered(self, blob_cls, queue_cls, registry, make_config, credential):
        config = make_config(
            blob="https://fibonatix.blob.core.windows.net",
            queue="UseDevelopmentStorage=true",
        )

        configure_services(registry, config, credential)

        assert registry.get(Capability.BLOB_CLIENT) is blob_cls.return_value
        assert registry.get(Capability.QUEUE_CLIENT) is queue_cls.from_connection_string.return_value
        blob_cls.assert_called_once_with(
            account_url="https://fibonatix.blob.core.windows.net", credential=credential
        )

    @patch("fibonatix_queue.azure_clients.factory.QueueServiceClient")
    @patch("fibonatix_queue.azure_clients.factory.BlobServiceClient")
    def test_managed_identity_can_be_disabled(self, blob_cls, queue_cls, registry, make_config):
        config = make_config(
            blob="https://fibonatix.blob.core.windows.net",
            azure_prefer_managed_identity=False,
        )

        configure_services(registry, config)

        blob_cls.from_connection_string.assert_called_once_with("https://fibonatix.blob.core.windows.net")

    @patch("fibonatix_queue.azure_clients.factory.BlobServiceClient")
    def test_bad_azure_descriptor_closes_backend(self, blob_cls, registry, make_config):
        blob_cls.from_connection_string.side_effect = ValueError("malformed")

        with patch.object(RedisQueueService, "close") as close:
            with pytest.raises(ConfigurationError):
                configure_services(registry, make_config(blob="garbage"))

        close.assert_called_once_with()
        assert not registry.is_registered(Capability.QUEUE_BACKEND)

    @patch("fibonatix_queue.azure_clients.factory.QueueServiceClient")
    @patch("fibonatix_queue.azure_clients.factory.BlobServiceClient")
    def test_failed_queue_client_closes_blob_client(self, blob_cls, queue_cls, registry, make_config, credential):
        queue_cls.from_connection_string.side_effect = ValueError("malformed")
        config = make_config(blob="https://fibonatix.blob.core.windows.net", queue="garbage")

        with patch.object(RedisQueueService, "close") as close:
            with pytest.raises(ConfigurationError):
                configure_services(registry, config, credential)

        blob_cls.return_value.close.assert_called_once_with()
        close.assert_called_once_with()
        assert not registry.is_registered(Capability.SETTINGS)
        assert not registry.is_registered(Capability.BLOB_CLIENT)

    @patch("fibonatix_queue.azure_clients.factory.BlobServiceClient")
    def test_preregistered_client_registers_nothing(self, blob_cls, registry, make_config, credential):
        existing = object()
        registry.register(Capability.BLOB_CLIENT, existing)

        with pytest.raises(DuplicateRegistrationError):
            configure_services(registry, make_config(blob="https://fibonatix.blob.core.windows.net"), credential)

        assert not registry.is_registered(Capability.SETTINGS)
        assert not registry.is_registered(Capability.QUEUE_BACKEND)
        assert registry.get(Capability.BLOB_CLIENT) is existing
        blob_cls.assert_not_called()

    def test_shutdown_closes_backend(self, make_config):
        registry = bootstrap(make_config())
        backend = registry.get(Capability.QUEUE_BACKEND)

        with patch.object(backend.redis, "close") as close:
            registry.shutdown()
            registry.shutdown()

        close.assert_called_once_with()


class TestAppLifespan:
    """Test the FastAPI app wiring"""

    def test_health_reports_backend_and_security(self, make_config):
        app = create_app(make_config(transform="true", algorithm="AES", environment="testing"))

        with TestClient(app) as client:
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "environment": "testing",
            "service": "Redis",
            "security": "secure",
        }
        assert "p1" not in response.text

    def test_registry_published_on_app_state(self, make_config):
        app = create_app(make_config())

        with TestClient(app):
            assert isinstance(app.state.registry.get(Capability.SETTINGS), PlainSettings)

    def test_startup_error_aborts_lifespan(self, make_config):
        app = create_app(make_config(service="Cassandra"))

        with pytest.raises(ConfigurationError, match="Cassandra"):
            with TestClient(app):
                pass


class TestRun:
    """Test the command-line entry point"""

    @patch("main.uvicorn.run")
    def test_startup_error_exits_with_one_line(self, uvicorn_run, make_config, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run(make_config(service="Cassandra"))

        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "❌" in out
        assert "Cassandra" in out
        assert "Traceback" not in out
        uvicorn_run.assert_not_called()

    @patch("main.uvicorn.run")
    def test_serves_the_registry_it_resolved(self, uvicorn_run, make_config):
        with patch("main.bootstrap", wraps=bootstrap) as boot:
            run(make_config(port=9000))

            (app,), kwargs = uvicorn_run.call_args
            assert kwargs == {"host": "127.0.0.1", "port": 9000}
            with TestClient(app):
                assert isinstance(app.state.registry.get(Capability.QUEUE_BACKEND), RedisQueueService)

        boot.assert_called_once()

    def test_import_builds_no_app(self):
        assert not hasattr(main, "app")
