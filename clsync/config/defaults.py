# clsync Default Configuration
# Full default configuration as Python dict and YAML generator

import copy
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "paths": {
        "home": "~/.clsync",
        "user_root": "~/.claude",
        "project_root": ".claude",
    },
    "github": {
        "api_url": "https://api.github.com",
        "raw_url": "https://raw.githubusercontent.com",
        "web_url": "https://github.com",
        "default_branch": "main",
        "token_env": "GITHUB_TOKEN",
        "timeout": 30.0,
        "registry_url": "https://raw.githubusercontent.com/workromancer/clsync-repos/refs/heads/main/repos.yaml",
    },
    "push": {
        "linked_repo": None,
        "message": "Update clsync settings",
        "author": None,
        "description": "Claude Code settings repository",
    },
    "output": {
        "verbose": False,
        "colored": True,
        "log_file": None,
    },
}


def get_default_config() -> dict[str, Any]:
    """Return a deep copy of the defaults safe to mutate."""
    return copy.deepcopy(DEFAULT_CONFIG)


def generate_default_config() -> str:
    """Generate default configuration as YAML string with comments."""
    header = """# clsync - Claude Code Settings Sync Configuration
#
# paths:
#   home:         manifest.json, local/ staging area and repos/ caches
#   user_root:    user-level settings (skills/, agents/, output-styles/)
#   project_root: project-level settings, relative to the working directory
#
# github.token_env names the environment variable holding an API token.
# A token is optional and only raises the rate limit.
#
# github.registry_url is the repos.yaml read by 'clsync online'.
#
# push.linked_repo (owner/repo) is used by 'clsync push' when no --repo is given.

"""
    return header + yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False, allow_unicode=True)
