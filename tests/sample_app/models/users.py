from django.db import models


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class User(TimeStampedModel):
    name = models.CharField(max_length=120)
    email = models.EmailField(unique=True)
    birth_date = models.DateField(null=True, blank=True)

    class Meta:
        app_label = "sample_app"

    @property
    def display_label(self) -> str:
        return f"{self.name} <{self.email}>"

    @property
    def initials(self):
        return "".join(part[:1] for part in (self.name or "").split())

    def published_posts(self) -> "QuerySet[Post]":
        from .blog import Post
        return Post.objects.filter(author_id=self.pk, status=Post.Status.PUBLISHED)

    def drafts(self):
        """
        Unpublished posts of this user.

        :rtype: QuerySet
        """
        from .blog import Post
        return Post.objects.filter(author_id=self.pk, status=Post.Status.DRAFT)

    def recent_posts(self):
        from .blog import Post
        return Post.objects.filter(author_id=self.pk).order_by("-id")

    def posts_since(self, day):
        from .blog import Post
        return Post.objects.filter(author_id=self.pk, created_at__date__gte=day)


class Profile(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="profile")
    bio = models.TextField(blank=True)
    avatar = models.FileField(upload_to="avatars/", blank=True)
    settings = models.JSONField(default=dict)

    class Meta:
        app_label = "sample_app"

    def theme(self):
        return self.settings.get("theme")

    def setting_values(self):
        return self.settings.values()
