from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField(required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    password = serializers.CharField()

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Le mot de passe est obligatoire')
        return v

    def validate(self, attrs):
        username = (attrs.get('username') or '').strip()
        email = (attrs.get('email') or '').strip()
        if not (username or email):
            raise serializers.ValidationError("Nom d'utilisateur ou email obligatoire")
        attrs['username'] = username
        attrs['email'] = email
        return attrs
