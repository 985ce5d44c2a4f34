from django.core.management.base import BaseCommand
from apps.identity.jwt_auth import purge_expired_revocations


class Command(BaseCommand):
    help = 'Deletes revoked token records whose tokens have expired'

    def handle(self, *args, **options):
        deleted = purge_expired_revocations()
        self.stdout.write(self.style.SUCCESS(f'Purged {deleted} expired token revocations'))
