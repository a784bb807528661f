from django import forms
from django.db import models


class Tier(models.IntegerChoices):
    BASIC = 1, "Basic"
    PLUS = 2, "Plus"
    PREMIUM = 3, "Premium"


class CreateUserForm(forms.Form):
    def rules(self):
        return {
            "name": "required|string|max:255",
            "email": "required|email",
            "role": "required|in:admin,user,guest",
        }


class RegistrationForm(forms.Form):
    def rules(self):
        return {
            "password": ["required", "string", "min:8", "confirmed"],
            "tags.*": "string|max:30",
            "tags.*.label": "required",
            "tier": ["required", Tier],
            "nickname": "nullable|string|between:2,20",
            "code": "sometimes|required|regex:^[A-Z]{3}$",
        }


class ProfileForm(forms.Form):
    bio = forms.CharField(max_length=500, required=False)
    website = forms.URLField(required=False)
    age = forms.IntegerField(min_value=13)
    newsletter = forms.BooleanField(required=False)
    plan = forms.ChoiceField(choices=[("free", "Free"), ("pro", "Pro")])


class BrokenRulesForm(forms.Form):
    def rules(self):
        raise RuntimeError("rules need a request")
        return {
            "title": "required|string",
            "attachments.*": "file",
        }
