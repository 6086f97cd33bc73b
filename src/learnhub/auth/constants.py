JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"

# Shorter HS256 keys are rejected at startup
MIN_JWT_SECRET_LENGTH = 32

# Bytes of entropy in an opaque refresh token before url-safe encoding
REFRESH_TOKEN_BYTES = 48
