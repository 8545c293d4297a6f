"""SchoolAdmin.

Backend for running a school (or any unit organized the same way): staff
accounts, departments, rooms and roles, page and API permissions, and the
student records office with its Excel imports.

High-level architecture
-----------------------

- ``schooladmin.core``:

  - Logging, monitoring, domain errors and security primitives.
  - The SQLModel entities, repositories and database session management.
  - Pure domain rules: the cohort calendar (gematria names, grade per date),
    row validators for imported sheets, and the page permission registry.

- ``schooladmin.server``:

  - The FastAPI application, its settings, middleware and exception handlers.
  - Services that implement the use cases on top of an ``AsyncSession``.
  - Versioned routers under ``/api/v1``.

Typical workflow
----------------

1. The first account created becomes the administrator.
2. The administrator creates accounts; users complete their profile and wait
   for approval.
3. Approved users receive page permissions (directly or through their role),
   which carry the API permissions the page needs.
4. Records staff import students from Excel; every row is checked against
   the cohort calendar before it is stored.
"""

__version__ = "0.1.0"
