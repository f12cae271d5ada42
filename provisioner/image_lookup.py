# provisioner/image_lookup.py
import logging

from botocore.exceptions import BotoCoreError, ClientError

from provisioner.errors import ImageLookupError, ImageNotFoundError

log = logging.getLogger("provisioner.image_lookup")


def first_image(images):
    """Keep the order the service returned; it is not guaranteed to be newest first."""
    return images[0]


def newest_image(images):
    # ISO-8601 CreationDate strings sort chronologically; images without one go last
    return max(images, key=lambda img: img.get("CreationDate") or "")


SELECTION_POLICIES = {
    "first": first_image,
    "newest": newest_image,
}


def build_filters(name_pattern, virtualization_type):
    return [
        {"Name": "name", "Values": [name_pattern]},
        {"Name": "virtualization-type", "Values": [virtualization_type]},
    ]


def resolve_image(
    client,
    name_pattern: str,
    virtualization_type: str,
    owners: list[str],
    select=first_image,
) -> str:
    """
    Return one image id matching the filters, chosen by `select` when the
    query returns several.
    """
    try:
        resp = client.describe_images(
            Filters=build_filters(name_pattern, virtualization_type),
            Owners=list(owners),
        )
    except (ClientError, BotoCoreError) as e:
        raise ImageLookupError(f"DescribeImages error: {e}") from e

    images = resp.get("Images") or []
    if not images:
        raise ImageNotFoundError(
            f"no image matches name={name_pattern} virtualization-type={virtualization_type} owners={','.join(owners)}"
        )

    image = select(images)
    log.info("Selected image %s (%s) out of %d match(es)", image["ImageId"], image.get("Name"), len(images))
    return image["ImageId"]
