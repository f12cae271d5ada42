# provisioner/key_pair.py
import logging
import os

from botocore.exceptions import BotoCoreError, ClientError

from provisioner.errors import KeyPairError, WriteError

log = logging.getLogger("provisioner.key_pair")

KEY_NOT_FOUND_CODE = "InvalidKeyPair.NotFound"
KEY_FILE_MODE = 0o600


def write_private_key(path, material: str):
    """
    Persist private key material readable and writable by the owner only.
    An existing file at `path` is truncated and its mode reset.
    """
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, KEY_FILE_MODE)
    with os.fdopen(fd, "w") as f:
        f.write(material)
    os.chmod(path, KEY_FILE_MODE)


def _describe(client, name):
    try:
        resp = client.describe_key_pairs(KeyNames=[name])
    except ClientError as e:
        # Missing key pair is reported as an error, not as an empty list
        if e.response["Error"]["Code"] == KEY_NOT_FOUND_CODE:
            return []
        raise KeyPairError(f"DescribeKeyPairs error: {e}") from e
    except BotoCoreError as e:
        raise KeyPairError(f"DescribeKeyPairs error: {e}") from e
    return resp.get("KeyPairs") or []


def ensure_key_pair(client, name: str, key_path) -> tuple[str, bool]:
    """
    Make sure a key pair called `name` exists and return (key_name, created).

    The private key is written to `key_path` only when the pair is created
    here. An existing pair is reused without checking for a local key file.
    """
    existing = _describe(client, name)
    if existing:
        key_name = existing[0]["KeyName"]
        log.info("Using existing key pair %s", key_name)
        return key_name, False

    log.info("Key pair %s not found, creating it", name)
    try:
        output = client.create_key_pair(KeyName=name)
    except (ClientError, BotoCoreError) as e:
        raise KeyPairError(f"CreateKeyPair error: {e}") from e

    try:
        write_private_key(key_path, output["KeyMaterial"])
    except OSError as e:
        raise WriteError(f"WriteFile error: {e}", key_name=output["KeyName"]) from e

    log.info("Created key pair %s, private key saved to %s", output["KeyName"], key_path)
    return output["KeyName"], True
