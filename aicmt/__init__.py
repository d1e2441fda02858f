"""
aicmt - AI-assisted git commits

Generates commit messages for staged changes, or splits a pile of
working-tree changes into several logical commits.
"""

__version__ = "0.1.0"

# Conventional commit types shared by prompts, validation and argparse
COMMIT_TYPES = {
    'feat': 'A new feature or capability',
    'fix': 'A bug fix',
    'refactor': 'Code restructuring without behavior change',
    'chore': 'Maintenance tasks, dependencies, tooling',
    'docs': 'Documentation only changes',
    'test': 'Adding or updating tests',
    'style': 'Formatting, whitespace, no code change',
    'perf': 'Performance improvement',
    'ci': 'CI/CD configuration changes',
    'build': 'Build system or external dependency changes',
}

COMMIT_TYPE_NAMES = list(COMMIT_TYPES.keys())
