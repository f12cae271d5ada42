# provisioner/config_loader.py
import os
import yaml
from dataclasses import dataclass, field
from pathlib import Path

from provisioner.errors import ConfigurationError
from provisioner.image_lookup import SELECTION_POLICIES

PROVISION_CONFIG_PATH = Path("config/provision.yaml")

# Canonical Ubuntu publisher: https://ubuntu.com/server/docs/cloud-images/amazon-ec2
UBUNTU_OWNER_ID = "099720109477"


@dataclass
class ProvisionConfig:
    profile: str = "go-iam"
    region: str | None = None
    key_name: str = "go-aws-demo"
    key_file: str = "go-aws-ec2.pem"
    instance_type: str = "t2.micro"
    image_name_pattern: str = "ubuntu/images/hvm-ssd/ubuntu-focal-20.04-amd64-server-*"
    virtualization_type: str = "hvm"
    image_owners: list = field(default_factory=lambda: [UBUNTU_OWNER_ID])
    image_selection: str = "first"
    cleanup_on_failure: bool = False


def _as_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("1", "true", "yes")


def load_provision_config(path=PROVISION_CONFIG_PATH):
    """
    Loads provisioning parameters.
    Priority:
      1) Environment variables
      2) config/provision.yaml (if present)
      3) Built-in defaults
    """
    cfg = {}

    path = Path(path)
    if path.exists():
        try:
            with open(path) as f:
                cfg = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"unable to parse {path}: {e}") from e
        if not isinstance(cfg, dict):
            raise ConfigurationError(f"{path} must contain a mapping, got {type(cfg).__name__}")

    defaults = ProvisionConfig()

    # Env vars take precedence
    profile = os.getenv("PROVISION_PROFILE") or cfg.get("profile") or defaults.profile
    region = os.getenv("PROVISION_REGION") or cfg.get("region") or defaults.region
    key_name = os.getenv("PROVISION_KEY_NAME") or cfg.get("key_name") or defaults.key_name
    key_file = os.getenv("PROVISION_KEY_FILE") or cfg.get("key_file") or defaults.key_file
    instance_type = os.getenv("PROVISION_INSTANCE_TYPE") or cfg.get("instance_type") or defaults.instance_type
    image_selection = os.getenv("PROVISION_IMAGE_SELECTION") or cfg.get("image_selection") or defaults.image_selection

    image_cfg = cfg.get("image") or {}
    if not isinstance(image_cfg, dict):
        raise ConfigurationError(f"image in {path} must be a mapping, got {type(image_cfg).__name__}")
    image_name_pattern = image_cfg.get("name_pattern") or defaults.image_name_pattern
    virtualization_type = image_cfg.get("virtualization_type") or defaults.virtualization_type
    image_owners = image_cfg.get("owners") or defaults.image_owners
    if not isinstance(image_owners, (list, tuple)):
        image_owners = [image_owners]

    cleanup_on_failure = os.getenv("PROVISION_CLEANUP_ON_FAILURE")
    if cleanup_on_failure is None:
        cleanup_on_failure = cfg.get("cleanup_on_failure", defaults.cleanup_on_failure)
    cleanup_on_failure = _as_bool(cleanup_on_failure)

    config = ProvisionConfig(
        profile=profile,
        region=region,
        key_name=key_name,
        key_file=key_file,
        instance_type=instance_type,
        image_name_pattern=image_name_pattern,
        virtualization_type=virtualization_type,
        image_owners=[str(o) for o in image_owners],
        image_selection=image_selection,
        cleanup_on_failure=cleanup_on_failure,
    )
    validate_config(config)
    return config


def validate_config(config: ProvisionConfig):
    if config.image_selection not in SELECTION_POLICIES:
        raise ConfigurationError(
            f"unknown image_selection {config.image_selection!r} "
            f"(expected one of {', '.join(sorted(SELECTION_POLICIES))})"
        )
    for name in ("profile", "key_name", "key_file", "instance_type"):
        if not getattr(config, name):
            raise ConfigurationError(f"{name} must not be empty")
