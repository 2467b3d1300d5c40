from tracker.services.codeforces import CodeforcesClient
from tracker.services.reminders import EmailNotifier, ReminderService
from tracker.services.store import LocalStore
from tracker.services.sync import BatchSync, StudentSync


def make_syncer(store, client=None):
    return StudentSync(store, client or CodeforcesClient())


def make_reminders(store, notifier=None):
    return ReminderService(store, notifier or EmailNotifier())


def make_batch(store, client=None, notifier=None):
    return BatchSync(store, make_syncer(store, client), make_reminders(store, notifier))


__all__ = [
    'BatchSync',
    'CodeforcesClient',
    'EmailNotifier',
    'LocalStore',
    'ReminderService',
    'StudentSync',
    'make_batch',
    'make_reminders',
    'make_syncer',
]
