"""Package name mapping tables.

Read-only lookup tables shared by the specifier rewriter and the
dependency extractor so the two always agree on what a foreign package
becomes. ``None`` means the package has no counterpart to install: the
functionality ships with the target runtime and the import is dropped.
"""

from types import MappingProxyType
from typing import Mapping, Optional

# deno.land/x/<name> → npm package
LEGACY_PACKAGE_MAPPINGS: Mapping[str, Optional[str]] = MappingProxyType({
    "std": None,
    "oak": "koa",
    "cors": "cors",
    "dotenv": "dotenv",
    "postgres": "pg",
    "mysql": "mysql2",
    "redis": "redis",
    "bcrypt": "bcrypt",
})

# Known foreign package names → npm package, on top of the legacy table
PACKAGE_MAPPINGS: Mapping[str, Optional[str]] = MappingProxyType({
    **LEGACY_PACKAGE_MAPPINGS,
    # Supabase
    "@supabase/supabase-js": "@supabase/supabase-js",
    # HTTP and Web
    "hono": "hono",
    # Utilities
    "lodash": "lodash",
    "date-fns": "date-fns",
    "uuid": "uuid",
    "nanoid": "nanoid",
    # Validation
    "zod": "zod",
    "yup": "yup",
    "joi": "joi",
    # HTTP clients
    "axios": "axios",
    "node-fetch": "node-fetch",
    # Database
    "mongodb": "mongodb",
    # AI/ML
    "openai": "openai",
    "@anthropic-ai/sdk": "@anthropic-ai/sdk",
    "langchain": "langchain",
    # Email
    "nodemailer": "nodemailer",
    "resend": "resend",
    "@sendgrid/mail": "@sendgrid/mail",
    # Payments
    "stripe": "stripe",
    # Authentication
    "jsonwebtoken": "jsonwebtoken",
    "jose": "jose",
    # Crypto
    "crypto-js": "crypto-js",
    # PDF
    "pdfkit": "pdfkit",
    "pdf-lib": "pdf-lib",
    # Images
    "sharp": "sharp",
    "jimp": "jimp",
    # AWS
    "@aws-sdk/client-s3": "@aws-sdk/client-s3",
    "@aws-sdk/client-ses": "@aws-sdk/client-ses",
    # Google
    "googleapis": "googleapis",
    "@google-cloud/storage": "@google-cloud/storage",
})

# Version ranges written into the generated dependency manifest
PACKAGE_VERSIONS: Mapping[str, str] = MappingProxyType({
    "@supabase/supabase-js": "^2.39.0",
    "openai": "^4.28.0",
    "stripe": "^14.14.0",
    "resend": "^3.2.0",
    "zod": "^3.22.4",
    "uuid": "^9.0.1",
    "nanoid": "^5.0.5",
    "date-fns": "^3.3.1",
    "lodash": "^4.17.21",
    "axios": "^1.6.7",
    "jsonwebtoken": "^9.0.2",
    "jose": "^5.2.2",
    "bcrypt": "^5.1.1",
    "pg": "^8.11.3",
    "redis": "^4.6.12",
    "mongodb": "^6.3.0",
    "@anthropic-ai/sdk": "^0.17.1",
    "langchain": "^0.1.17",
    "nodemailer": "^6.9.9",
    "@sendgrid/mail": "^8.1.1",
    "sharp": "^0.33.2",
    "pdfkit": "^0.15.0",
    "pdf-lib": "^1.17.1",
    "@aws-sdk/client-s3": "^3.515.0",
    "@aws-sdk/client-ses": "^3.515.0",
    "googleapis": "^132.0.0",
    "@google-cloud/storage": "^7.7.0",
    "hono": "^4.0.1",
    "crypto-js": "^4.2.0",
    "koa": "^2.15.0",
})


def map_package(name: str) -> Optional[str]:
    """Map a foreign package name to the package to install.

    Unknown names pass through unchanged. ``std`` and anything under
    ``std/`` map to ``None``.
    """
    if name in PACKAGE_MAPPINGS:
        return PACKAGE_MAPPINGS[name]
    if name.startswith("std/"):
        return None
    return name


def package_root(name: str) -> str:
    """Strip a subpath: ``pkg/sub`` → ``pkg``, ``@scope/pkg/sub`` → ``@scope/pkg``."""
    parts = name.split("/")
    if name.startswith("@"):
        return "/".join(parts[:2])
    return parts[0]
