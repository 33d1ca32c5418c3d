#!/usr/bin/env python
"""
Test runner script using Django's own runner (pytest + pytest-django works too)
Usage: python Doc/run_tests.py [label ...]
"""
import os
import sys

import django
from django.conf import settings
from django.test.utils import get_runner

DEFAULT_LABELS = [
    'evportal.core',
    'evportal.pricing',
    'evportal.inventory',
    'evportal.sales',
    'evportal.client',
]

if __name__ == "__main__":
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'evportal.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    failures = test_runner.run_tests(sys.argv[1:] or DEFAULT_LABELS)
    sys.exit(bool(failures))
