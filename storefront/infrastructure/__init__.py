"""Infrastructure adapters: storage backends, schedulers and the storage factory."""
