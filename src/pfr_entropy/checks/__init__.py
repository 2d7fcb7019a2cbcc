"""Named identity checks and the YAML-driven identity suite."""
