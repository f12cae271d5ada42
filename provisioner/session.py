# provisioner/session.py
import logging

import boto3
from botocore.exceptions import BotoCoreError

from provisioner.errors import ConfigurationError

log = logging.getLogger("provisioner.session")


def resolve_client(profile: str, region: str | None = None):
    """
    Build an EC2 client bound to the credentials and region of `profile`.

    Region falls back to whatever the profile (or the SDK's own lookup chain)
    declares when `region` is None.
    """
    try:
        session = boto3.Session(profile_name=profile, region_name=region) if region else boto3.Session(profile_name=profile)
        if session.get_credentials() is None:
            raise ConfigurationError(f"unable to load SDK config, no credentials found for profile {profile}")
        ec2 = session.client("ec2")
    except (BotoCoreError, OSError) as e:  # a missing credential_process binary raises OSError
        raise ConfigurationError(f"unable to load SDK config, {e}") from e

    log.info("Resolved profile %s in region %s", profile, ec2.meta.region_name)
    return ec2
