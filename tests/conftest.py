pytest_plugins = ["tests.fixtures.webhook_fixtures"]
