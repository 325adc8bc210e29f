"""eftdoc - Entity Framework model documentation generator.

Copies SQL Server extended-property descriptions (MS_Description) into an
EDMX model as Documentation/Summary elements, then patches the model's T4
templates so generated entity classes and DbSet properties carry the same
text as XML doc comments.

Re-running is safe: documentation is always rebuilt from the catalog and
already patched templates are left untouched.
"""

__version__ = "0.1.0"
__author__ = "eftdoc Contributors"
