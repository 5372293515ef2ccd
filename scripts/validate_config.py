#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dca_app.config.loader import ConfigLoader
from dca_app.config.validation import ConfigValidator
from dca_app.errors import ConfigurationError, PersistenceError
from dca_app.persistence.sqlite_gateway import SqlitePersistenceGateway


def main():
    """Main validation function."""
    config_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    print("🔍 Validating DCA engine configuration...")

    all_valid = True
    loader = ConfigLoader.create(config_dir)

    try:
        errors = ConfigValidator.validate_config(loader.merge_config())
    except ConfigurationError as e:
        print(f"❌ Unable to load configuration: {e}")
        sys.exit(1)

    if errors:
        print(f"❌ Found {len(errors)} engine validation errors:")
        for error in errors:
            print(f"  • {error.field}: {error.message} (value: {error.value})")
        sys.exit(1)

    try:
        engine_config = loader.build_engine_config()
    except ConfigurationError as e:
        print(f"❌ Unable to load configuration: {e}")
        sys.exit(1)
    print(f"✅ Engine configuration is valid ({engine_config.exchange.pair} on {engine_config.exchange.exchange_id})")

    print(f"\n📋 Checking stored bot settings in {engine_config.storage.db_path}...")
    try:
        bot_config = SqlitePersistenceGateway(engine_config.storage.db_path).get_active_configuration()
    except PersistenceError as e:
        print(f"❌ Error reading stored settings: {e}")
        sys.exit(1)

    if bot_config is None:
        print("⚠️  No bot settings stored yet")
    else:
        errors = ConfigValidator.validate_bot_settings(
            {
                "purchase_amount": bot_config.purchase_amount,
                "purchase_interval_minutes": bot_config.purchase_interval_minutes,
                "credentials_ref": bot_config.credentials_ref,
            },
            min_purchase_amount=engine_config.policy.min_purchase_amount,
            max_interval_minutes=engine_config.policy.max_interval_minutes,
        )
        if errors:
            print(f"❌ Stored bot settings have {len(errors)} problems:")
            for error in errors:
                print(f"  • {error.field}: {error.message} (value: {error.value})")
            all_valid = False
        else:
            print("✅ Stored bot settings are valid")

    if all_valid:
        print(f"\n🎉 All configuration validation passed!")
        sys.exit(0)
    else:
        print(f"\n❌ Configuration validation failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
