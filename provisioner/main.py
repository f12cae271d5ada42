# provisioner/main.py
import argparse
import dataclasses
import logging
import logging.config
import os
import sys
from dataclasses import dataclass

import yaml
from botocore.exceptions import BotoCoreError, ClientError

from provisioner.config_loader import load_provision_config, validate_config
from provisioner.errors import ProvisionError, WriteError
from provisioner.image_lookup import SELECTION_POLICIES, resolve_image
from provisioner.instance_manager import launch_instance
from provisioner.key_pair import ensure_key_pair
from provisioner.session import resolve_client

log = logging.getLogger("provisioner.main")


def load_logging_config(path="config/logging.yaml"):
    try:
        with open(path) as f:
            cfg = yaml.safe_load(f)
        logging.config.dictConfig(cfg)
    except (OSError, yaml.YAMLError, ValueError, TypeError):
        logging.basicConfig(
            level=logging.INFO,
            format='{"time":"%(asctime)s","level":"%(levelname)s","name":"%(name)s","msg":"%(message)s"}',
        )


@dataclass
class CreatedResources:
    """Resources this run created, in creation order."""
    key_name: str | None = None
    key_file: str | None = None
    instance_id: str | None = None


def release_created_resources(client, created: CreatedResources):
    """
    Best-effort rollback for a failed run: delete the key pair and the local
    key file if this run created them. Cleanup failures are logged only.
    """
    if created.key_name:
        try:
            client.delete_key_pair(KeyName=created.key_name)
            log.info("Deleted key pair %s", created.key_name)
        except (ClientError, BotoCoreError) as e:
            log.warning("Could not delete key pair %s: %s", created.key_name, e)

    if created.key_file and os.path.exists(created.key_file):
        try:
            os.remove(created.key_file)
            log.info("Removed key file %s", created.key_file)
        except OSError as e:
            log.warning("Could not remove key file %s: %s", created.key_file, e)


def create_instance(config, client_factory=resolve_client, on_failure=None):
    """
    Resolve the profile, ensure the key pair, pick the image and launch one
    instance. Returns the instance id.

    Nothing is rolled back by default. When `on_failure` is given it is called
    as on_failure(client, created) before a post-session error propagates.
    """
    client = client_factory(config.profile, config.region)
    created = CreatedResources()

    try:
        key_name, key_created = ensure_key_pair(client, config.key_name, config.key_file)
        if key_created:
            created.key_name = key_name
            created.key_file = config.key_file

        image_id = resolve_image(
            client,
            config.image_name_pattern,
            config.virtualization_type,
            config.image_owners,
            select=SELECTION_POLICIES[config.image_selection],
        )

        created.instance_id = launch_instance(client, image_id, key_name, config.instance_type)
    except ProvisionError as e:
        if isinstance(e, WriteError) and e.key_name:
            created.key_name = e.key_name
            created.key_file = config.key_file
        if on_failure is not None:
            on_failure(client, created)
        raise

    return created.instance_id


def apply_overrides(config, args):
    overrides = {
        "profile": args.profile,
        "region": args.region,
        "key_name": args.key_name,
        "key_file": args.key_file,
        "instance_type": args.instance_type,
        "image_selection": args.image_selection,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if args.cleanup_on_failure:
        overrides["cleanup_on_failure"] = True
    config = dataclasses.replace(config, **overrides)
    validate_config(config)
    return config


def main(argv=None):
    parser = argparse.ArgumentParser(description="Provision one EC2 instance: key pair -> image -> launch.")
    parser.add_argument("--profile", help="AWS shared-config profile (default go-iam)")
    parser.add_argument("--region", help="AWS region; defaults to the profile's region")
    parser.add_argument("--key-name", help="EC2 key pair name to reuse or create (default go-aws-demo)")
    parser.add_argument("--key-file", help="Where to save the private key if the pair is created (default go-aws-ec2.pem)")
    parser.add_argument("--instance-type", help="Instance type (default t2.micro)")
    parser.add_argument("--image-selection", choices=sorted(SELECTION_POLICIES), help="How to pick among matching images (default first)")
    parser.add_argument("--cleanup-on-failure", action="store_true", help="Delete the key pair and key file created by this run if a later step fails")
    args = parser.parse_args(argv)

    load_logging_config()

    try:
        config = apply_overrides(load_provision_config(), args)
        on_failure = release_created_resources if config.cleanup_on_failure else None
        instance_id = create_instance(config, on_failure=on_failure)
    except ProvisionError as e:
        print(f"createEC2 error: {e}")
        return 1

    print(f"Instance id: {instance_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
