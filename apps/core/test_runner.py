from django.apps import apps
from django.test.runner import DiscoverRunner


class InstalledAppsOnlyDiscoverRunner(DiscoverRunner):
    def build_suite(self, test_labels=None, **kwargs):
        if not test_labels:
            # apps.core itself is the parent package; discovering it would
            # collect every app's tests twice.
            test_labels = [
                app_config.name
                for app_config in apps.get_app_configs()
                if app_config.name.startswith('apps.core.')
            ]
        return super().build_suite(test_labels=test_labels, **kwargs)
