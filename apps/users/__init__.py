"""Users app package.

Defines the custom user model with roles (student, admin, hostel manager,
super admin, vendor, vendor employee) and the ``Vendor`` tenant used for
data scoping. Use ``apps.users.models.CustomUser`` as the AUTH_USER_MODEL
throughout the project.
"""
