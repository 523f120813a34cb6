"""R02 ImagePullBackOff.

Matches containers waiting on an image that cannot be pulled.
"""

from __future__ import annotations

from kubehealer.models.diagnosis import NO_MATCH, CheckResult
from kubehealer.models.resources import ContainerSpec, ContainerStatus, ResourceSnapshot, Waiting
from kubehealer.rules.base import Rule

_IMAGE_PULL_REASONS = frozenset({"ErrImagePull", "ImagePullBackOff"})

_SUGGESTION = (
    "Check: 1. the image name for typos "
    "2. that the image tag exists in the registry "
    "3. imagePullSecrets credentials for private registries"
)


class ImagePullRule(Rule):
    """Matches Waiting containers with reason ErrImagePull or ImagePullBackOff."""

    rule_id = "R02_image_pull"
    display_name = "ImagePullBackOff"

    def check(
        self,
        resource: ResourceSnapshot,
        spec: ContainerSpec | None,
        status: ContainerStatus,
    ) -> CheckResult:
        state = status.state
        if not isinstance(state, Waiting) or state.reason not in _IMAGE_PULL_REASONS:
            return NO_MATCH

        image = status.image or (spec.image if spec is not None else "") or "<unknown image>"
        return CheckResult(
            matched=True,
            title=f"Image pull failed (cannot fetch {image})",
            raw_error=state.message,
            suggestion=_SUGGESTION,
        )
