import pytest

from infrastructure.external.storage.config import (
    API_VERSION,
    Credentials,
    StoreType,
    VolumeConfig,
    resolve_client_config,
)
from infrastructure.external.storage.exceptions import ConfigurationError


@pytest.mark.parametrize(
    "key_id,secret",
    [("", ""), ("AKIAEXAMPLE", ""), ("", "s3cr3t"), (None, "s3cr3t"), ("AKIAEXAMPLE", None), (None, None)],
)
def test_incomplete_credentials_defer_to_ambient_chain(key_id, secret):
    cfg = resolve_client_config(key_id, secret, "eu-west-1")
    assert cfg.credentials is None
    kwargs = cfg.boto_kwargs()
    assert "aws_access_key_id" not in kwargs
    assert "aws_secret_access_key" not in kwargs
    assert kwargs["region_name"] == "eu-west-1"


def test_explicit_credentials_embedded_verbatim():
    cfg = resolve_client_config("AKIAEXAMPLE", "s3cr3t", "us-west-2")
    assert cfg.credentials == Credentials(key="AKIAEXAMPLE", secret="s3cr3t")
    assert cfg.region == "us-west-2"
    assert cfg.version == API_VERSION == "latest"
    assert cfg.boto_kwargs() == {
        "region_name": "us-west-2",
        "aws_access_key_id": "AKIAEXAMPLE",
        "aws_secret_access_key": "s3cr3t",
    }


def test_empty_region_is_kept_but_not_sent():
    cfg = resolve_client_config("AKIAEXAMPLE", "s3cr3t")
    assert cfg.region == ""
    assert "region_name" not in cfg.boto_kwargs()


def test_endpoint_is_forwarded():
    cfg = resolve_client_config(None, None, "us-east-1", endpoint="http://localhost:9000")
    assert cfg.boto_kwargs()["endpoint_url"] == "http://localhost:9000"


def test_secret_not_in_repr():
    cfg = resolve_client_config("AKIAEXAMPLE", "s3cr3t", "us-east-1")
    assert "s3cr3t" not in repr(cfg.credentials)


@pytest.mark.parametrize("raw", ["a", "a/", "/a", "/a/", " a/ "])
def test_subfolder_is_stored_without_edge_slashes(raw):
    assert VolumeConfig(subfolder=raw).subfolder == "a"


def test_nested_subfolder_keeps_inner_slash():
    assert VolumeConfig(subfolder="a/b/").subfolder == "a/b"


def test_config_is_immutable():
    cfg = VolumeConfig(bucket="b", region="us-east-1")
    with pytest.raises(Exception):
        cfg.bucket = "other"


@pytest.mark.parametrize(
    "values,missing",
    [({}, "bucket, region"), ({"bucket": "b"}, "region"), ({"region": "us-east-1"}, "bucket")],
)
def test_bucket_and_region_are_required(values, missing):
    with pytest.raises(ConfigurationError) as exc:
        VolumeConfig(**values).ensure_valid()
    assert missing in str(exc.value)


def test_client_config_from_volume():
    cfg = VolumeConfig(bucket="b", region="ap-south-1", key_id="AKIA", secret="x")
    client = cfg.client_config()
    assert client.region == "ap-south-1"
    assert client.credentials.key == "AKIA"


def test_from_settings_group():
    from core.config import VolumeSettings

    s = VolumeSettings(
        type="memory", bucket="b", region="us-east-1", subfolder="/media/",
        expires="1 day", storage_class="STANDARD_IA", cf_distribution_id="E1",
    )
    cfg = VolumeConfig.from_settings(s)
    assert cfg.type == StoreType.MEMORY
    assert cfg.subfolder == "media"
    assert cfg.expires == "1 day"
    assert cfg.storage_class == "STANDARD_IA"
    assert cfg.cf_distribution_id == "E1"
