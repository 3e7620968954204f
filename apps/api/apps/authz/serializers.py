"""
Authz serializers: login.
"""
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer


class LoginSerializer(TokenObtainPairSerializer):
    """
    Email/password login.

    Response:
        {"token": "<access>", "refresh": "<refresh>",
         "user": {"id", "email", "name", "role", "roles"}}
    """

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['name'] = user.full_name
        token['roles'] = user.role_names()
        token['role'] = user.primary_role()
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        return {
            'token': data['access'],
            'refresh': data['refresh'],
            'user': {
                'id': str(self.user.id),
                'email': self.user.email,
                'name': self.user.full_name,
                'role': self.user.primary_role(),
                'roles': self.user.role_names(),
            },
        }
