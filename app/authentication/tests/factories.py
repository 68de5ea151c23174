"""
Factory Boy factories for authentication models.

Usage:
    from authentication.tests.factories import UserFactory

    user = UserFactory()
    moderator = UserFactory(is_staff=True)
    ada = UserFactory(first_name="Ada", last_name="Lovelace")
"""

import factory

from authentication.models import User


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    Users are created through UserManager.create_user() so passwords are
    hashed and emails normalized exactly as in production.
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    color = factory.Sequence(lambda n: n % 8)
    is_active = True
    is_staff = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        password = kwargs.pop("password", "TestPass123!")
        return model_class.objects.create_user(
            email=kwargs.pop("email"), password=password, **kwargs
        )
