"""
Skillora Test Suite

Tests for:
- Registration, login and profile management
- Role-based and ownership access control
- Course catalog and CRUD
- Enrollment, including concurrent duplicate requests
- Module management and reordering
- Progress tracking
- Database consistency
- Failure modes
"""
