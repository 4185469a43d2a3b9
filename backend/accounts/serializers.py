from rest_framework import serializers
from django.contrib.auth import get_user_model

User = get_user_model()

class UserSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=6)
    invite_code_input = serializers.CharField(write_only=True, required=False, allow_blank=True)
    balance = serializers.DecimalField(source="wallet.balance", max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = User
        fields = (
            "id",
            "username",
            "email",
            "password",
            "full_name",
            "phone_number",
            "invite_code",
            "invite_code_input",
            "balance",
            "is_staff",
        )
        read_only_fields = ("invite_code", "is_staff")
        extra_kwargs = {
            "email": {"required": True},
        }

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("This email is already registered.")
        return value.lower()

    def validate_invite_code_input(self, value):
        if value and not User.objects.filter(invite_code=value).exists():
            raise serializers.ValidationError("Invalid invite code.")
        return value

    def create(self, validated_data):
        invite_code = validated_data.pop("invite_code_input", None)
        password = validated_data.pop("password")

        user = User(**validated_data)
        user.set_password(password)

        if invite_code:
            user.referred_by = User.objects.filter(invite_code=invite_code).first()

        user.save()
        return user
