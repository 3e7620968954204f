"""
In-test adapter fakes injected into BookingService.
"""
from apps.integrations.notifications import NotificationAdapter
from apps.integrations.scheduling import LocalSchedulingSimulator


class RecordingNotifications(NotificationAdapter):
    """Records every send; raises ``error`` from every send when set."""

    name = 'recording'

    def __init__(self, error=None):
        self.error = error
        self.sent = []

    async def _record(self, channel, to, body):
        if self.error is not None:
            raise self.error
        self.sent.append((channel, to, body))

    async def send_email(self, to, subject, template, data):
        await self._record('email', to, {'subject': subject, 'template': template, 'data': data})

    async def send_sms(self, to, message):
        await self._record('sms', to, message)

    async def send_voice(self, to, script):
        await self._record('voice', to, script)


class FailingScheduling(LocalSchedulingSimulator):
    """Simulator whose writes (and optionally reads) raise ``error``."""

    name = 'failing'

    def __init__(self, error, fail_reads=False):
        super().__init__()
        self.error = error
        self.fail_reads = fail_reads

    async def get_provider_availability(self, provider_id, date):
        if self.fail_reads:
            raise self.error
        return await super().get_provider_availability(provider_id, date)

    async def create_appointment(self, booking):
        raise self.error

    async def update_appointment(self, external_id, changes):
        raise self.error

    async def cancel_appointment(self, external_id):
        raise self.error
