from datetime import timedelta
from django.utils import timezone
from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from apps.tasks.models import Task, TaskComment, TaskStatus, TaskPriority
from apps.reports.models import Report

User = get_user_model()

DEMO_PASSWORD = 'password123'


class Command(BaseCommand):
    help = 'Seeds the database with demo users, tasks and comments.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clean',
            action='store_true',
            help='Delete existing data before seeding',
        )
        parser.add_argument(
            '--users',
            action='store_true',
            help='Seed users only',
        )

    def handle(self, *args, **options):
        if options['clean']:
            self.stdout.write(self.style.WARNING('Cleaning database...'))
            self._clean_database()
            self.stdout.write(self.style.SUCCESS('Database cleaned.'))

        users = self._seed_users()

        if not options['users']:
            self._seed_tasks(users)

        self.stdout.write(self.style.SUCCESS('Seeding completed successfully.'))

    def _clean_database(self):
        Report.objects.all().delete()
        TaskComment.objects.all().delete()
        Task.all_objects.all().delete()
        User.objects.exclude(is_superuser=True).delete()

    def _get_or_create_user(self, email, name, superuser=False):
        user = User.objects.filter(email=email).first()
        if user:
            self.stdout.write(f' - Using existing {email}')
            return user

        create = User.objects.create_superuser if superuser else User.objects.create_user
        user = create(
            email=email,
            password=DEMO_PASSWORD,
            name=name,
            email_verified_at=timezone.now(),
        )
        self.stdout.write(f' - Created {email} ({DEMO_PASSWORD})')
        return user

    def _seed_users(self):
        self.stdout.write('Seeding Users...')
        return {
            'admin': self._get_or_create_user('admin@taskmanager.com', 'Administrator', superuser=True),
            'john': self._get_or_create_user('john@taskmanager.com', 'John Doe'),
            'jane': self._get_or_create_user('jane@taskmanager.com', 'Jane Smith'),
        }

    def _seed_tasks(self, users):
        self.stdout.write('Seeding Tasks...')
        today = timezone.localdate()
        admin, john, jane = users['admin'], users['john'], users['jane']

        tasks_data = [
            {
                'title': 'Setup Development Environment',
                'description': 'Setup the API backend and web frontend for the task management platform',
                'status': TaskStatus.COMPLETED,
                'priority': TaskPriority.HIGH,
                'due_date': today - timedelta(days=2),
                'created_by': admin,
                'assigned_to': john,
                'comments': [
                    (admin, 'Development environment has been setup successfully with all required dependencies.'),
                    (john, 'Great work! The setup looks clean and well organized.'),
                ],
            },
            {
                'title': 'Implement User Authentication',
                'description': 'Create login, registration, and logout functionality',
                'status': TaskStatus.IN_PROGRESS,
                'priority': TaskPriority.HIGH,
                'due_date': today + timedelta(days=3),
                'created_by': admin,
                'assigned_to': admin,
                'comments': [
                    (admin, 'Working on bearer token implementation and secure password handling.'),
                ],
            },
            {
                'title': 'Design Database Schema',
                'description': 'Design and implement the database schema for tasks, users, attachments, and comments',
                'status': TaskStatus.COMPLETED,
                'priority': TaskPriority.MEDIUM,
                'due_date': today - timedelta(days=5),
                'created_by': john,
                'assigned_to': jane,
            },
            {
                'title': 'Create API Endpoints',
                'description': 'Develop RESTful API endpoints for task management operations',
                'status': TaskStatus.IN_PROGRESS,
                'priority': TaskPriority.HIGH,
                'due_date': today + timedelta(days=2),
                'created_by': jane,
                'assigned_to': admin,
            },
            {
                'title': 'Implement File Upload System',
                'description': 'Create file upload functionality with validation and thumbnail generation',
                'status': TaskStatus.PENDING,
                'priority': TaskPriority.MEDIUM,
                'due_date': today + timedelta(days=7),
                'created_by': admin,
                'assigned_to': john,
            },
        ]

        created = 0
        for data in tasks_data:
            comments = data.pop('comments', [])
            task, was_created = Task.objects.get_or_create(
                title=data.pop('title'),
                created_by=data.pop('created_by'),
                defaults=data,
            )
            if not was_created:
                continue

            created += 1
            for author, text in comments:
                TaskComment.objects.create(task=task, user=author, comment=text)

        self.stdout.write(f' - Created {created} tasks')
