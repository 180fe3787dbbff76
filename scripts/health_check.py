#!/usr/bin/env python3
"""
Toornament Client Health Check Script.

Verifies that the client is installed, configured and able to authenticate.
"""

import sys
import os


def check_python_version():
    """Check Python version."""
    print("Checking Python version...", end=" ")
    version = sys.version_info
    if version.major >= 3 and version.minor >= 10:
        print(f"✅ Python {version.major}.{version.minor}.{version.micro}")
        return True
    else:
        print(f"❌ Python {version.major}.{version.minor} (need 3.10+)")
        return False


def check_toornament_core():
    """Check toornament_core package."""
    print("Checking toornament_core...", end=" ")
    try:
        import toornament_core
        print(f"✅ Version {toornament_core.__version__}")
        return True
    except ImportError as e:
        print(f"❌ Not installed ({e})")
        return False


def check_credentials():
    """Check credential environment variables."""
    print("Checking credentials...", end=" ")
    missing = [
        name
        for name in ("TOORNAMENT_API_KEY", "TOORNAMENT_CLIENT_ID", "TOORNAMENT_CLIENT_SECRET")
        if not os.environ.get(name)
    ]
    if not missing:
        print("✅ Set")
        return True
    elif os.environ.get("TOORNAMENT_CONFIG_PATH"):
        print(f"⚠️ {', '.join(missing)} not set (may come from the config file)")
        return True
    else:
        print(f"❌ {', '.join(missing)} not set")
        return False


def check_authentication():
    """Check that the application can obtain an access token."""
    print("Checking authentication...", end=" ")
    from toornament_core import ConfigManager, Toornament
    from toornament_core.api.exceptions import APIError

    config = ConfigManager.from_env().load()
    try:
        with Toornament.from_config(config):
            print(f"✅ Token obtained from {config.api_url}")
            return True
    except APIError as e:
        print(f"❌ {e}")
        return False


def main():
    """Run all health checks."""
    print("=" * 50)
    print("Toornament Client Health Check")
    print("=" * 50)
    print()

    checks = [
        ("Python Version", check_python_version),
        ("Toornament Core", check_toornament_core),
        ("Credentials", check_credentials),
        ("Authentication", check_authentication),
    ]

    results = []
    for name, check_func in checks:
        try:
            results.append(check_func())
        except Exception as e:
            print(f"❌ Error in {name}: {e}")
            results.append(False)

    print()
    print("=" * 50)
    passed = sum(results)
    total = len(results)

    if all(results):
        print(f"✅ All checks passed ({passed}/{total})")
        return 0
    else:
        print(f"⚠️ Some checks failed ({passed}/{total})")
        return 1


if __name__ == "__main__":
    sys.exit(main())
