"""Reading and rewriting the image reference of a GitOps overlay."""

from promotion_harness.errors import PreconditionError
from promotion_harness.models.git import Environment

IMAGE_MARKER = "- image:"


def deployment_patch_path(component: str, environment: Environment) -> str:
    """Path of the deployment patch for an environment overlay."""
    return f"components/{component}/overlays/{environment}/deployment-patch.yaml"


def extract_image(content: str) -> str:
    """Return the image of the first ``- image:`` entry.

    The value may follow the marker on the same line or sit alone on the next
    non-empty line.

    Raises:
        PreconditionError: No image entry is present

    """
    lines = content.splitlines()
    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped.startswith(IMAGE_MARKER):
            continue
        if value := stripped.removeprefix(IMAGE_MARKER).strip():
            return value
        for following in lines[index + 1 :]:
            if following.strip():
                return following.strip()
    raise PreconditionError("No image entry found in deployment patch")


def replace_image(content: str, image: str) -> str:
    """Point the first ``- image:`` entry at a new image, keeping indentation.

    Raises:
        PreconditionError: No image entry is present

    """
    lines = content.split("\n")
    for index, line in enumerate(lines):
        if line.strip().startswith(IMAGE_MARKER):
            indent = line[: len(line) - len(line.lstrip())]
            lines[index] = f"{indent}{IMAGE_MARKER} {image}"
            return "\n".join(lines)
    raise PreconditionError("No image entry found in deployment patch")
