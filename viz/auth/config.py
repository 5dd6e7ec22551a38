"""
Authentication configuration.

Centralizes Supabase Auth and JWT settings.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# Supabase Configuration
# =============================================================================

# Supabase project URL (e.g., https://xxx.supabase.co)
SUPABASE_URL = os.environ.get("SUPABASE_URL", "").rstrip("/")

# Supabase anonymous/public key (safe to expose in frontend)
SUPABASE_ANON_KEY = os.environ.get("SUPABASE_ANON_KEY", "")

# JWT secret for verifying Supabase tokens (same as JWT_SECRET in Supabase dashboard)
SUPABASE_JWT_SECRET = os.environ.get("SUPABASE_JWT_SECRET", "")

# =============================================================================
# OAuth Configuration
# =============================================================================

# Frontend URL for redirects and toast links
FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:8080")
