import os
from unittest.mock import patch

import pytest

from notify_listener.models import NotificationEvent
from notify_listener.notifier import DesktopNotifier, resolve_logo_path


@pytest.mark.parametrize('logo, expected', [
    ('alert.png', 'alert.png'),
    (None, 'default_toast_logo.png'),
    ('', 'default_toast_logo.png'),
    ('   ', 'default_toast_logo.png'),
])
def test_resolve_logo_path(logo, expected):
    path = resolve_logo_path(logo)

    assert os.path.isabs(path)
    assert path == os.path.abspath(os.path.join('images', expected))


def test_resolve_logo_path_uses_images_dir(tmp_path):
    path = resolve_logo_path('x.png', str(tmp_path))

    assert path == str(tmp_path / 'x.png')


@patch('notify_listener.notifier.notification')
def test_desktop_notifier_renders_event(mock_notification, tmp_path):
    notifier = DesktopNotifier(str(tmp_path))
    event = NotificationEvent(title='Hi', body_message='Details', message_id='1', logo=None)

    notifier(event)

    mock_notification.notify.assert_called_once()
    kwargs = mock_notification.notify.call_args.kwargs
    assert kwargs['title'] == 'Hi'
    assert kwargs['message'] == 'Details'
    assert kwargs['app_name'] == 'Notify Listener'
    assert kwargs['app_icon'] == str(tmp_path / 'default_toast_logo.png')


@patch('notify_listener.notifier.notification')
def test_desktop_notifier_propagates_render_errors(mock_notification):
    mock_notification.notify.side_effect = NotImplementedError('no backend')

    with pytest.raises(NotImplementedError):
        DesktopNotifier()(NotificationEvent('t', 'b', '1'))
