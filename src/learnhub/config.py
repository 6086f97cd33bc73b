import os
from os.path import join

root_dir = os.path.dirname(os.path.abspath(__file__))

users_table_name = "users"
refresh_tokens_table_name = "refresh_tokens"

log_dir = join(os.path.dirname(root_dir), "logs")
log_file_path = join(log_dir, "backend.log")

default_database_path = join(os.path.dirname(root_dir), "db", "db.sqlite")

# Closed set of roles; a role is fixed when the identity is created.
ROLES = ("learner", "trainer", "operations")

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
INVALID_TOKEN_MESSAGE = "Invalid or expired token"
PASSWORD_RESET_MESSAGE = "If the email exists, a reset link has been sent"
