from django.db import models

from .users import TimeStampedModel, User


class Tag(models.Model):
    name = models.CharField(max_length=50)
    slug = models.SlugField(unique=True)

    class Meta:
        app_label = "sample_app"


class Post(TimeStampedModel):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        PUBLISHED = "published", "Published"

    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name="posts")
    title = models.CharField(max_length=200)
    body = models.TextField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    rating = models.DecimalField(max_digits=3, decimal_places=1, null=True)
    tags = models.ManyToManyField(Tag, related_name="posts", blank=True)

    class Meta:
        app_label = "sample_app"
