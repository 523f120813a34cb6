"""KubeHealer - rule-based Kubernetes Pod diagnosis."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("kubehealer")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
