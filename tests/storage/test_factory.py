import pytest

from infrastructure.external.storage import factory
from infrastructure.external.storage.config import StoreType, VolumeConfig
from infrastructure.external.storage.exceptions import ConfigurationError
from infrastructure.external.storage.providers.memory import InMemoryCdnControl
from infrastructure.external.storage.volume import S3Volume


@pytest.fixture
def clean_registry(monkeypatch):
    monkeypatch.setattr(factory, "_builder_registry", {})
    return factory._builder_registry


@pytest.mark.asyncio
async def test_memory_volume_is_auto_registered(clean_registry):
    config = VolumeConfig(type="memory", bucket="b", region="us-east-1", subfolder="media/")
    volume = await factory.create_volume(config)

    assert isinstance(volume, S3Volume)
    assert volume.subfolder == "media"
    assert StoreType.MEMORY in clean_registry
    assert StoreType.S3 in clean_registry


@pytest.mark.asyncio
async def test_memory_volume_with_distribution_gets_cdn(clean_registry):
    config = VolumeConfig(type="memory", bucket="b", region="us-east-1", cf_distribution_id="E1")
    volume = await factory.create_volume(config)
    assert isinstance(volume.cdn, InMemoryCdnControl)


@pytest.mark.asyncio
async def test_s3_volume_builds_clients(clean_registry):
    config = VolumeConfig(
        type="s3", bucket="b", region="eu-west-1",
        key_id="AKIAEXAMPLE", secret="s3cr3t", cf_distribution_id="E1",
    )
    volume = await factory.create_volume(config)

    assert volume.store.bucket == "b"
    assert volume.store.client.meta.region_name == "eu-west-1"
    assert volume.cdn.client.meta.service_model.service_name == "cloudfront"


@pytest.mark.asyncio
async def test_incomplete_config_rejected(clean_registry):
    with pytest.raises(ConfigurationError):
        await factory.create_volume(VolumeConfig(type="memory", bucket="b"))


@pytest.mark.asyncio
async def test_builder_failure_wrapped(clean_registry):
    async def broken(config):
        raise RuntimeError("boom")

    factory.register_builder(StoreType.MEMORY, broken)
    with pytest.raises(ConfigurationError) as exc:
        await factory.create_volume(VolumeConfig(type="memory", bucket="b", region="us-east-1"))
    assert "boom" in str(exc.value)


@pytest.mark.asyncio
async def test_init_volume_reads_settings():
    from infrastructure.external.storage import get_volume_config, init_volume

    get_volume_config.cache_clear()
    volume = await init_volume()

    assert volume.config.bucket == "test-bucket"
    assert volume.subfolder == "assets"
    assert volume.get_root_url() == "https://cdn.example.com/assets/"


@pytest.mark.asyncio
async def test_unknown_store_type_rejected(clean_registry):
    config = VolumeConfig(type="gcs", bucket="b", region="us-east-1")
    assert config.type == "gcs"

    with pytest.raises(ConfigurationError) as exc:
        await factory.create_volume(config)

    message = str(exc.value)
    assert "gcs" in message
    assert "memory" in message and "s3" in message


def test_store_type_normalized():
    assert VolumeConfig(type=" Memory ").type == StoreType.MEMORY
    assert VolumeConfig(type="").type == StoreType.S3
    assert VolumeConfig(type=StoreType.MEMORY).type == "memory"


def test_unusable_settings_raise_configuration_error():
    from core.config import VolumeSettings

    settings_group = VolumeSettings.model_construct(
        **{**VolumeSettings().model_dump(), "timeout": "soon"}
    )
    with pytest.raises(ConfigurationError):
        VolumeConfig.from_settings(settings_group)
