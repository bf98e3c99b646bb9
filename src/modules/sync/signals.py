from django.dispatch import Signal

# Sent once per distinct timestamp a watcher observes.
# kwargs: sync_type (str), timestamp (str)
sync_timestamp_changed = Signal()
