from django import forms


class CreateUserForm(forms.Form):
    def rules(self):
        return {
            "name": "required|string",
            "is_staff": "boolean",
        }
