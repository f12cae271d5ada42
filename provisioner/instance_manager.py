# provisioner/instance_manager.py
import logging

from botocore.exceptions import BotoCoreError, ClientError

from provisioner.errors import EmptyResultError, LaunchError

log = logging.getLogger("provisioner.instance_manager")


def launch_instance(
    client,
    image_id: str,
    key_name: str,
    instance_type: str,
) -> str:
    """
    Launch exactly one on-demand instance and return its instance id.
    Does not wait for the instance to reach the running state.
    """
    launch_spec = {
        "ImageId": image_id,
        "InstanceType": instance_type,
        "KeyName": key_name,
    }

    try:
        resp = client.run_instances(MinCount=1, MaxCount=1, **launch_spec)
    except (ClientError, BotoCoreError) as e:
        raise LaunchError(f"RunInstances error: {e}") from e

    instances = resp.get("Instances") or []
    if not instances:
        raise EmptyResultError("RunInstances returned no instances")

    instance_id = instances[0]["InstanceId"]
    log.info("Instance requested: %s (%s from %s)", instance_id, instance_type, image_id)
    return instance_id
