"""Services wiring the release domain to git, GitHub, the build and S3."""
