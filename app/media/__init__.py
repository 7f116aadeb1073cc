"""
Object storage for user-uploaded images.

This package provides:
- ObjectStorage backends that take an uploaded file and return a public URL
  plus the handle needed to delete it later (StoredObject)
- Image size checks and staged-upload cleanup shared by the chat and
  authentication services
"""
