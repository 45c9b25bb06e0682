# Callback command keys, the part before the first colon of a button's callback data.

CANCEL = "cancel"
MAIN_MENU = "main_menu"

# Client booking
BOOK_APPOINTMENT = "book_appointment"
CHOOSE_TENANT = "choose_tenant"
CHOOSE_SERVICE = "choose_service"
CHOOSE_THIS_MONTH = "choose_this_month"
CHOOSE_PREV_MONTH = "choose_prev_month"
CHOOSE_NEXT_MONTH = "choose_next_month"
CHOOSE_DATE = "choose_date"
CHOOSE_TIME = "choose_time"
BACK_TO_CALENDAR = "back_to_calendar"
BACK_TO_SERVICES = "back_to_services"

# Client settings
VIEW_BOOKINGS = "view_bookings"
CHANGE_TIMEZONE = "change_timezone"
SET_TIMEZONE = "set_timezone"
CHANGE_LANGUAGE = "change_language"
SET_LANGUAGE = "set_language"

# Appointment lifecycle
CONFIRM_BOOKING = "confirm_booking"
REJECT_BOOKING = "reject_booking"

# Owner schedule
SETUP_WORK_DAYS = "setup_work_days"
TOGGLE_WORK_DAY = "workingdays"
CHANGE_WORK_TIME = "change_work_time"
SELECT_WORK_TIME_DAY = "select_day_for_work_time_start"
CHANGE_WORK_TIMEZONE = "change_work_timezone"
SET_WORK_TIMEZONE = "set_work_timezone"
MANAGE_BREAKS = "manage_breaks"
SELECT_BREAK_DAY = "select_day_for_breaks"
ADD_BREAK = "add_break"
REMOVE_BREAK = "remove_break"
REMOVE_BREAK_CONFIRM = "remove_break_confirmation"

# Owner tenant profile
LIST_SERVICES = "list_services"
ADD_SERVICE = "add_service"
SERVICE_CURRENCY = "service_currency"
SERVICE_DURATION = "service_duration"
ADD_LOCATION = "add_location"
GET_CLIENT_LINK = "get_client_link"
