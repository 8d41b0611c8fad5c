"""Release services: adapters, poller, monitors, classifiers and the coverage gate."""
