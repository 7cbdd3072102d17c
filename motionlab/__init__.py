"""Rules and resolution engine for motion/modifier muscle activation content.

Subpackages:
    - config: Environment settings and score policy presets
    - content: Content entities, providers and snapshots
    - scoring: Delta resolution, activation, constraints and combo rules
    - linter: Content-integrity linting and coverage reporting
    - services: Orchestration over a content snapshot
"""

__version__ = "0.1.0"
