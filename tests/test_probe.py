"""
Unit tests for the instance probe.
"""

import httpx
import pytest

from tierguard.catalog.models import CatalogSnapshot, InstanceRegistration
from tierguard.compliance.models import Tier
from tierguard.signals.probe import (
    ProbeParseError,
    collect_observations,
    parse_probe_body,
    probe_instance,
    service_from_url,
)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _instance(url: str = "https://billing.prod.example.com/info", environment: str = "Production") -> InstanceRegistration:
    return InstanceRegistration(id=4, url=url, environment=environment, region="us-east-1", project_id=1)


class TestServiceFromUrl:
    """Test cases for service_from_url."""

    def test_first_host_label(self):
        assert service_from_url("https://billing.uat.example.com/info") == "billing"
        assert service_from_url("http://localhost:8080/version") == "localhost"

    def test_unusable_url(self):
        assert service_from_url("not a url") == "unknown-service"
        assert service_from_url("") == "unknown-service"


class TestParseProbeBody:
    """Test cases for parse_probe_body."""

    def test_valid_payload(self):
        payload = parse_probe_body(b'{"service": "billing", "version": "1.2.3", "uptime": 42}')
        assert payload.service == "billing"
        assert payload.version == "1.2.3"

    def test_fields_are_optional(self):
        payload = parse_probe_body("{}")
        assert payload.service is None
        assert payload.version is None

    @pytest.mark.parametrize("body", [b"<html></html>", b"[1, 2]", b'"1.0.0"', b'{"version": 1.2}', b"\xff\xfe"])
    def test_unusable_bodies(self, body):
        with pytest.raises(ProbeParseError):
            parse_probe_body(body)

    def test_deeply_nested_body(self):
        """Nesting deeper than the decoder can follow is a parse error, not a crash."""
        with pytest.raises(ProbeParseError):
            parse_probe_body(b"[" * 100000 + b"]" * 100000)



class TestProbeInstance:
    """Test cases for probe_instance."""

    @pytest.mark.asyncio
    async def test_online_instance(self):
        def handler(request):
            return httpx.Response(200, json={"service": "billing-api", "version": "1.4.0"})

        async with _client(handler) as client:
            obs = await probe_instance(client, _instance(), "Payments")

        assert obs.status == "online"
        assert obs.service_name == "billing-api"
        assert obs.version == "1.4.0"
        assert obs.tier.tier is Tier.PROD
        assert obs.project_name == "Payments"
        assert obs.region == "us-east-1"
        assert obs.instance_id == 4
        assert obs.response_time_ms >= 0

    @pytest.mark.asyncio
    async def test_missing_fields_use_defaults(self):
        def handler(request):
            return httpx.Response(200, json={"service": "", "status": "up"})

        async with _client(handler) as client:
            obs = await probe_instance(client, _instance(), "Payments")

        assert obs.status == "online"
        assert obs.service_name == "billing"
        assert obs.version == "0.0.0"

    @pytest.mark.asyncio
    async def test_transport_error_is_offline(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            obs = await probe_instance(client, _instance(), "Payments")

        assert obs.status == "offline"
        assert obs.version == "0.0.0"
        assert obs.service_name == "billing"
        assert obs.tier.tier is Tier.PROD

    @pytest.mark.asyncio
    async def test_non_2xx_is_offline(self):
        def handler(request):
            return httpx.Response(503, json={"service": "billing", "version": "9.9.9"})

        async with _client(handler) as client:
            obs = await probe_instance(client, _instance(), "Payments")

        assert obs.status == "offline"
        assert obs.version == "0.0.0"

    @pytest.mark.asyncio
    async def test_unparsable_body_is_offline(self):
        def handler(request):
            return httpx.Response(200, text="<html>maintenance</html>")

        async with _client(handler) as client:
            obs = await probe_instance(client, _instance(), "Payments")

        assert obs.status == "offline"

    @pytest.mark.asyncio
    async def test_timeout_is_offline(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(handler) as client:
            obs = await probe_instance(client, _instance(), "Payments")

        assert obs.status == "offline"


class TestCollectObservations:
    """Test cases for collect_observations."""

    @pytest.mark.asyncio
    async def test_probes_every_instance_in_catalog_order(self, snapshot):
        versions = {
            "billing.dev.example.com": "1.3.0",
            "billing.uat.example.com": "1.2.0",
            "billing.oat.example.com": "1.2.0",
            "billing.example.com": "1.1.0",
        }

        def handler(request):
            version = versions.get(request.url.host)
            if version is None:
                raise httpx.ConnectError("no route", request=request)
            return httpx.Response(200, json={"service": "billing", "version": version})

        async with _client(handler) as client:
            observations = await collect_observations(snapshot, client=client)

        assert [o.instance_id for o in observations] == [1, 2, 3, 4, 5]
        assert [o.tier.label for o in observations] == ["dev", "uat", "oat", "prod", "uat"]
        assert [o.status for o in observations] == ["online"] * 4 + ["offline"]
        assert observations[4].service_name == "ledger"
        assert observations[4].project_name == "Unknown Project"
        assert observations[0].project_name == "Payments"

    @pytest.mark.asyncio
    async def test_one_failure_does_not_abort_the_rest(self):
        snapshot = CatalogSnapshot(instances=[
            InstanceRegistration(id=1, url="https://a.dev.example.com", environment="dev", project_id=1),
            InstanceRegistration(id=2, url="https://b.dev.example.com", environment="dev", project_id=1),
        ])

        def handler(request):
            if request.url.host.startswith("a."):
                raise httpx.ConnectError("down", request=request)
            return httpx.Response(200, json={"version": "2.0.0"})

        async with _client(handler) as client:
            observations = await collect_observations(snapshot, client=client)

        assert [o.status for o in observations] == ["offline", "online"]
        assert observations[1].version == "2.0.0"

    @pytest.mark.asyncio
    async def test_deeply_nested_body_is_offline(self):
        snapshot = CatalogSnapshot(instances=[
            InstanceRegistration(id=1, url="https://a.dev.example.com", environment="dev", project_id=1),
            InstanceRegistration(id=2, url="https://b.dev.example.com", environment="dev", project_id=1),
        ])

        def handler(request):
            if request.url.host.startswith("a."):
                return httpx.Response(200, content=b"[" * 100000 + b"]" * 100000)
            return httpx.Response(200, json={"version": "2.0.0"})

        async with _client(handler) as client:
            observations = await collect_observations(snapshot, client=client)

        assert [o.status for o in observations] == ["offline", "online"]
        assert observations[0].version == "0.0.0"
        assert observations[0].service_name == "a"


    @pytest.mark.asyncio
    async def test_empty_catalog(self):
        assert await collect_observations(CatalogSnapshot()) == []
