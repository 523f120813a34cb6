"""KubeHealer command-line interface."""
