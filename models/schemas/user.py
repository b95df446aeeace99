from marshmallow import EXCLUDE, Schema, ValidationError, fields, pre_load, validate, validates

USERNAME_PATTERN = r"^[A-Za-z0-9_]+$"


def _strip(v):
    return v.strip() if isinstance(v, str) else v


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def _not_blank(value):
    if not value or not value.strip():
        raise ValidationError("Field may not be blank.")


class RegisterSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    username = fields.String(
        required=True,
        validate=[
            validate.Length(min=3, max=30),
            validate.Regexp(USERNAME_PATTERN, error="Only letters, digits and underscore are allowed."),
        ],
    )
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=6, max=100))
    first_name = fields.String(required=True, data_key="firstName", validate=_not_blank)
    last_name = fields.String(required=True, data_key="lastName", validate=_not_blank)
    email = fields.Email(required=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "username" in data:
                data["username"] = _strip(data["username"])
            if "email" in data:
                data["email"] = _norm_email(data["email"])
        return data


class SignInSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    username = fields.String(required=True, validate=_not_blank)
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))


class RefreshTokenSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(required=True, data_key="refreshToken", validate=_not_blank)

    @validates("refresh_token")
    def validate_length(self, value, **kwargs):
        if len(value) > 512:
            raise ValidationError("Refresh token is too long.")


class SignOutSchema(RefreshTokenSchema):
    pass


class UserOutSchema(Schema):
    id = fields.String()
    username = fields.String()
    email = fields.String()
    first_name = fields.String(data_key="firstName")
    last_name = fields.String(data_key="lastName")
    role = fields.Method("get_role")
    is_administrator = fields.Boolean(data_key="isAdministrator")

    def get_role(self, obj):
        role = getattr(obj, "role", None)
        return getattr(role, "value", role)
