"""Domain layer for recurmatch application.

Services live in their own modules (``recurmatch.domain.account``,
``recurmatch.domain.reconciliation``, ...) and are imported from there, since
they depend on the database interface which in turn depends on the entities
defined here.
"""
