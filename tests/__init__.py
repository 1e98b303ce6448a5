"""Test package. Points the app at a shared in-memory database before anything imports it."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SESSION_SECRET"] = "test-session-secret-0123456789abcdef"
os.environ["APP_ENV"] = "dev"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["ADMIN_PASSWORD"] = "admin-password-1"
