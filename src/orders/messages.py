"""User-facing messages (Arabic, as rendered by the portal frontend)."""

# Generic
SYSTEM_ERROR = 'حدث خطأ في النظام'
INCOMPLETE_DATA = 'البيانات غير مكتملة'
MISSING_USERNAME = 'اسم المستخدم مطلوب'
NOT_FOUND = 'الصفحة غير موجودة'

# Identity
LOGIN_FAILED = 'اسم المستخدم أو كلمة المرور غير صحيحة'
USER_NOT_FOUND = 'المستخدم غير موجود'
INVALID_USER = 'بيانات المستخدم غير صحيحة'

# Branches and catalog
BRANCHES_LOAD_FAILED = 'حدث خطأ في تحميل الفروع'
DATA_LOAD_FAILED = 'حدث خطأ في تحميل البيانات'
PREVIOUS_ORDERS_FAILED = 'حدث خطأ أثناء استخراج الطلبيات السابقة'

# Approvals
APPROVAL_FORBIDDEN = 'غير مسموح بالموافقة على الطلبات'
APPROVALS_LOAD_FAILED = 'حدث خطأ أثناء تحميل طلبات الموافقة'
APPROVAL_DETAILS_FAILED = 'حدث خطأ أثناء تحميل تفاصيل الطلب'
NO_PENDING_FOR_BRANCH = 'لا يوجد طلبات معلقة لهذا الفرع في هذا الشهر'
BRANCH_APPROVE_FAILED = 'حدث خطأ أثناء تأكيد الطلب'
PENDING_LOAD_FAILED = 'حدث خطأ في تحميل الطلبات المعلقة'
CANNOT_APPROVE_STATUS = 'لا يمكن اعتماد طلب بهذه الحالة'
NO_PENDING_FOR_SERIAL = 'لا يوجد طلبات معلقة لهذا الرقم في هذا الشهر'
APPROVE_FAILED = 'حدث خطأ أثناء اعتماد الطلب'

# Waiting order edits and cancellation
EDIT_FORBIDDEN = 'غير مسموح بتعديل الطلبات'
CANNOT_EDIT_STATUS = 'لا يمكن تعديل طلب بهذه الحالة'
NO_LINES_TO_EDIT = 'لم يتم العثور على بنود لتعديلها'
EDIT_FAILED = 'حدث خطأ أثناء حفظ التعديلات'
CANCEL_FORBIDDEN = 'غير مسموح بإلغاء الطلبات'
CANNOT_CANCEL_STATUS = 'لا يمكن إلغاء طلب بهذه الحالة'
CANCEL_FAILED = 'حدث خطأ أثناء إلغاء الطلب'

# Submission and returns
ORDER_INCOMPLETE = 'بيانات الطلب غير مكتملة'
BRANCH_FORBIDDEN = 'غير مسموح لك بالطلب لهذا الفرع'
SUBMIT_FAILED = 'حدث خطأ أثناء إرسال الطلب'
RETURNS_INCOMPLETE = 'بيانات الطلبات غير مكتملة'
NO_RETURN_ROWS = 'لم يتم العثور على بيانات لتحديثها'
RETURNS_FAILED = 'حدث خطأ أثناء تحديث الطلبيات'

# L2 dashboard
SUMMARY_FORBIDDEN = 'غير مسموح بعرض قائمة الطلبات'
SUMMARY_FAILED = 'حدث خطأ في تحميل قائمة الطلبات'
DETAILS_FORBIDDEN = 'غير مسموح بعرض تفاصيل الطلب'

# Exports
EXPORT_FORBIDDEN = 'غير مسموح بتحميل ملف إكسل للطلبات'
NO_EXPORT_DATA = 'لم يتم العثور على بيانات للطلبات المحددة'
NO_ORDER_DATA = 'لم يتم العثور على بيانات لهذا الطلب'
EXPORT_FAILED = 'حدث خطأ أثناء تحميل ملف الإكسل'

# Shown as "requested by" when an order's lines came from several users
MULTIPLE_USERS = 'أكثر من مستخدم'
