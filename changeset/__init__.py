"""changeset: version and changelog management for multi-module repositories.

Changesets are small markdown files describing which modules changed and how
severely. `changeset version` consumes them into a release plan: version
bumps propagated through the internal dependency graph, pinned
pyproject.toml files, changelog entries and a release manifest that
`changeset tag` and `changeset publish` turn into git tags.
"""
