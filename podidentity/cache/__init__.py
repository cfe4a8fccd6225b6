"""Cache layer for podidentity.

Holds the set of workload identities eligible for container credential
patching, reloaded in full whenever the backing file changes.

Submodules:
    identity_cache -- FileConfig: hot-reloadable identity lookup cache.
    rwlock         -- Reader/writer lock guarding the installed snapshot.
"""

from podidentity.cache.identity_cache import Config, FileConfig

__all__ = ["Config", "FileConfig"]
